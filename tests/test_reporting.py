"""Tests for nash_allocation.reporting module."""

import pytest

from nash_allocation.config import SystemConfig
from nash_allocation.reporting import format_comparison, format_final_state
from nash_allocation.runner import ComparisonResult, run_comparison
from nash_allocation.state import AllocationState


@pytest.fixture
def comparison(balanced_config: SystemConfig) -> ComparisonResult:
    return run_comparison(config=balanced_config)


class TestFormatFinalState:
    def test_one_line_per_node(self, reference_state: AllocationState) -> None:
        report = format_final_state(state=reference_state, name="gradient")
        assert "Final allocations (First Derivative):" in report
        assert "  Node0 (lambda=0.30): x=0.250" in report
        assert "  Node3 (lambda=0.10): x=0.250" in report

    def test_final_cost(self, reference_state: AllocationState) -> None:
        report = format_final_state(state=reference_state, name="newton")
        assert report.splitlines()[-1] == "Final cost: 1.3000"

    def test_unknown_name_used_verbatim(self, reference_state: AllocationState) -> None:
        report = format_final_state(state=reference_state, name="custom")
        assert report.startswith("Final allocations (custom):")


class TestFormatComparison:
    def test_lists_every_algorithm(self, comparison: ComparisonResult) -> None:
        report = format_comparison(comparison=comparison)
        for label in ("First Derivative", "Second Derivative", "Pairwise"):
            assert label in report

    def test_reports_convergence_iteration(self, comparison: ComparisonResult) -> None:
        report = format_comparison(comparison=comparison)
        converged_at = comparison.runs["newton"].result.converged_at
        assert f"at {converged_at}" in report

    def test_names_lowest_cost(self, comparison: ComparisonResult) -> None:
        report = format_comparison(comparison=comparison)
        assert report.splitlines()[-1].startswith("Lowest cost: ")
