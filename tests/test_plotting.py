"""Tests for nash_allocation.plotting module."""

from pathlib import Path

import pytest

from nash_allocation.config import SystemConfig
from nash_allocation.plotting import (
    plot_allocation_evolution,
    plot_allocations,
    plot_convergence,
    plot_derivatives,
)
from nash_allocation.runner import ComparisonResult, run_comparison


@pytest.fixture
def comparison(balanced_config: SystemConfig) -> ComparisonResult:
    return run_comparison(config=balanced_config)


class TestPlots:
    def test_convergence_chart(
        self, comparison: ComparisonResult, tmp_path: Path
    ) -> None:
        path = plot_convergence(
            runs=comparison.runs, path=tmp_path / "plots" / "convergence.png"
        )
        assert path.exists()
        assert path.stat().st_size > 0

    def test_allocations_chart(
        self, comparison: ComparisonResult, tmp_path: Path
    ) -> None:
        path = plot_allocations(runs=comparison.runs, path=tmp_path / "allocations.png")
        assert path.exists()

    def test_derivatives_chart(
        self, comparison: ComparisonResult, tmp_path: Path
    ) -> None:
        path = plot_derivatives(runs=comparison.runs, path=tmp_path / "derivatives.png")
        assert path.exists()

    def test_allocation_evolution_chart(
        self, comparison: ComparisonResult, tmp_path: Path
    ) -> None:
        path = plot_allocation_evolution(
            run=comparison.runs["gradient"], path=tmp_path / "evolution.png"
        )
        assert path.exists()
