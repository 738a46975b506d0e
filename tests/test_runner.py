"""Tests for nash_allocation.runner module."""

import math

import pytest

from nash_allocation.algorithms import GRADIENT, NEWTON, PAIRWISE, AlgorithmResult
from nash_allocation.config import AlgorithmSettings, SystemConfig
from nash_allocation.runner import (
    AlgorithmRun,
    ComparisonResult,
    build_state,
    build_topology,
    run_comparison,
    run_gradient,
    run_pairwise,
)
from nash_allocation.state import create_state
from nash_allocation.topology import path_topology


def _result(name: str, cost: float) -> AlgorithmResult:
    return AlgorithmResult(
        name=name,
        allocations=(0.5, 0.5),
        cost=cost,
        iterations=1,
        converged_at=None,
        max_difference=1.0,
    )


def _run(name: str, cost: float) -> AlgorithmRun:
    state = create_state(arrival_rates=[0.1, 0.2], service_rate=1.5, weight_factor=1.0)
    return AlgorithmRun(result=_result(name, cost), state=state)


class TestBuildState:
    def test_fresh_state_per_call(self, balanced_config: SystemConfig) -> None:
        first = build_state(config=balanced_config)
        second = build_state(config=balanced_config)
        assert first is not second
        assert first.nodes[0] is not second.nodes[0]
        assert [node.allocation for node in first.nodes] == [0.25] * 4


class TestBuildTopology:
    def test_defaults_to_complete_graph(self, balanced_config: SystemConfig) -> None:
        assert build_topology(config=balanced_config).number_of_edges() == 6

    def test_uses_configured_edges(self, balanced_config: SystemConfig) -> None:
        config = balanced_config.model_copy(update={"topology": [(0, 1), (1, 2)]})
        assert build_topology(config=config).number_of_edges() == 2


class TestRunComparison:
    def test_runs_every_algorithm(self, balanced_config: SystemConfig) -> None:
        comparison = run_comparison(config=balanced_config)
        assert list(comparison.runs) == [GRADIENT, NEWTON, PAIRWISE]
        assert all(run.result.converged for run in comparison.runs.values())

    def test_states_are_independent(self, balanced_config: SystemConfig) -> None:
        comparison = run_comparison(config=balanced_config)
        states = [run.state for run in comparison.runs.values()]
        assert len({id(state) for state in states}) == 3
        for run in comparison.runs.values():
            assert len(run.state.cost_history) == run.result.iterations

    def test_history_respects_configured_budget(self) -> None:
        config = SystemConfig(
            service_rate=1.5,
            arrival_rates=[0.3, 0.2, 0.4, 0.1],
            weight_factor=1.0,
            gradient=AlgorithmSettings(step_size=0.01, max_iterations=7),
        )
        run = run_gradient(config=config)
        assert run.result.iterations == 7
        assert run.result.converged_at is None

    def test_pairwise_topology_override(self, balanced_config: SystemConfig) -> None:
        run = run_pairwise(config=balanced_config, topology=path_topology(node_count=4))
        assert run.result.converged


class TestComparisonResultBest:
    def test_lowest_cost_wins(self) -> None:
        comparison = ComparisonResult(
            runs={
                GRADIENT: _run(GRADIENT, 1.3),
                NEWTON: _run(NEWTON, 1.2),
                PAIRWISE: _run(PAIRWISE, 1.25),
            }
        )
        assert comparison.best.name == NEWTON

    def test_infinite_cost_never_wins(self) -> None:
        comparison = ComparisonResult(
            runs={
                GRADIENT: _run(GRADIENT, math.inf),
                NEWTON: _run(NEWTON, 9.0),
            }
        )
        assert comparison.best.name == NEWTON

    def test_best_on_real_runs(self, balanced_config: SystemConfig) -> None:
        comparison = run_comparison(config=balanced_config)
        costs = [run.result.cost for run in comparison.runs.values()]
        assert comparison.best.cost == pytest.approx(min(costs))
