"""Run the allocation algorithms on fresh states built from a configuration."""

from dataclasses import dataclass

import networkx as nx

from nash_allocation.algorithms import (
    GRADIENT,
    NEWTON,
    PAIRWISE,
    AlgorithmResult,
    gradient_walk,
    newton_walk,
    pairwise_walk,
)
from nash_allocation.config import SystemConfig
from nash_allocation.state import AllocationState, create_state
from nash_allocation.topology import complete_topology, create_topology

__all__ = [
    "AlgorithmRun",
    "ComparisonResult",
    "build_state",
    "build_topology",
    "run_comparison",
    "run_gradient",
    "run_newton",
    "run_pairwise",
]


@dataclass(frozen=True, slots=True)
class AlgorithmRun:
    """Result of one algorithm together with the state it optimized.

    Attributes:
        result: Final snapshot returned by the algorithm.
        state: The state after the run, holding the cost and allocation
            histories.
    """

    result: AlgorithmResult
    state: AllocationState


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Runs of every algorithm on identical initial configurations.

    Attributes:
        runs: Algorithm runs keyed by algorithm name, in execution order.
    """

    runs: dict[str, AlgorithmRun]

    @property
    def best(self) -> AlgorithmResult:
        """Result with the lowest final cost; an infinite cost never wins."""
        return min(
            (run.result for run in self.runs.values()),
            key=lambda result: result.cost,
        )


def build_state(
    *,
    config: SystemConfig,
) -> AllocationState:
    """Create an independent uniform state from `config`."""
    return create_state(
        arrival_rates=config.arrival_rates,
        service_rate=config.service_rate,
        weight_factor=config.weight_factor,
    )


def build_topology(
    *,
    config: SystemConfig,
) -> nx.MultiGraph:
    """Topology from `config`, or the complete graph when none is given."""
    if config.topology is None:
        return complete_topology(node_count=config.node_count)
    return create_topology(node_count=config.node_count, edges=config.topology)


def run_gradient(
    *,
    config: SystemConfig,
) -> AlgorithmRun:
    state = build_state(config=config)
    result = gradient_walk(
        state=state,
        step_size=config.gradient.step_size,
        max_iterations=config.gradient.max_iterations,
        epsilon=config.gradient.epsilon,
        max_workers=config.max_workers,
    )
    return AlgorithmRun(result=result, state=state)


def run_newton(
    *,
    config: SystemConfig,
) -> AlgorithmRun:
    state = build_state(config=config)
    result = newton_walk(
        state=state,
        step_size=config.newton.step_size,
        max_iterations=config.newton.max_iterations,
        epsilon=config.newton.epsilon,
        max_workers=config.max_workers,
    )
    return AlgorithmRun(result=result, state=state)


def run_pairwise(
    *,
    config: SystemConfig,
    topology: nx.MultiGraph | None = None,
) -> AlgorithmRun:
    """Run the pairwise algorithm.

    Args:
        config: System configuration.
        topology: Interaction graph overriding the configured one.

    Returns:
        The pairwise run.
    """
    state = build_state(config=config)
    result = pairwise_walk(
        state=state,
        topology=topology if topology is not None else build_topology(config=config),
        step_size=config.pairwise.step_size,
        max_iterations=config.pairwise.max_iterations,
        epsilon=config.pairwise.epsilon,
        max_workers=config.max_workers,
    )
    return AlgorithmRun(result=result, state=state)


def run_comparison(
    *,
    config: SystemConfig,
) -> ComparisonResult:
    """Run gradient -> newton -> pairwise, each on its own fresh state.

    Args:
        config: System configuration shared by all three runs.

    Returns:
        All three runs keyed by algorithm name.
    """
    return ComparisonResult(
        runs={
            GRADIENT: run_gradient(config=config),
            NEWTON: run_newton(config=config),
            PAIRWISE: run_pairwise(config=config),
        }
    )
