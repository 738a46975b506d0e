"""Iterative solvers driving an allocation towards marginal-cost equilibrium.

All three solvers share one iteration shape: a fork-join phase evaluating
per-node derivatives on an unmodified snapshot of the state, a convergence
test, an update, normalization back onto the simplex and a cost record.
Writes to the state only start once every read of the phase has finished.
"""

import logging
import math
from collections.abc import Callable
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Final

import networkx as nx
import numpy as np
from numpy.typing import NDArray

from nash_allocation.cost_model import (
    cost,
    first_derivative,
    inverse_second_derivative,
)
from nash_allocation.normalization import normalize
from nash_allocation.state import AllocationState
from nash_allocation.topology import edge_differences

__all__ = [
    "GRADIENT",
    "NEWTON",
    "PAIRWISE",
    "AlgorithmResult",
    "gradient_walk",
    "newton_walk",
    "pairwise_walk",
]

logger = logging.getLogger(__name__)

GRADIENT: Final = "gradient"
NEWTON: Final = "newton"
PAIRWISE: Final = "pairwise"

_PROGRESS_EVERY: Final = {GRADIENT: 10, NEWTON: 5, PAIRWISE: 20}


@dataclass(frozen=True, slots=True)
class AlgorithmResult:
    """Final snapshot of one algorithm run.

    Attributes:
        name: Algorithm identifier.
        allocations: Final allocation per node, in id order.
        cost: Final total cost; ``math.inf`` if the allocation is unstable.
        iterations: Number of completed update iterations.
        converged_at: Iteration index at which the convergence test passed,
            or `None` if the iteration budget was exhausted.
        max_difference: Last measured marginal-cost spread (deviation from
            the mean, or the largest edge difference for pairwise).
    """

    name: str
    allocations: tuple[float, ...]
    cost: float
    iterations: int
    converged_at: int | None
    max_difference: float

    @property
    def converged(self) -> bool:
        return self.converged_at is not None


Measure = Callable[..., float | tuple[float, float]]


def _fork_join(
    *,
    executor: Executor,
    state: AllocationState,
    measure: Measure,
) -> NDArray[np.float64]:
    """Evaluate `measure` for every node index and wait for all results."""
    results = list(
        executor.map(
            lambda index: measure(state=state, index=index),
            range(len(state.nodes)),
        )
    )
    return np.array(results, dtype=np.float64)


def _slope_and_curvature(
    *,
    state: AllocationState,
    index: int,
) -> tuple[float, float]:
    return (
        first_derivative(state=state, index=index),
        inverse_second_derivative(state=state, index=index),
    )


def _validate_parameters(
    *,
    step_size: float,
    max_iterations: int,
    epsilon: float,
) -> None:
    if step_size <= 0:
        msg = f"step_size must be positive, got {step_size}"
        raise ValueError(msg)
    if max_iterations < 0:
        msg = f"max_iterations must not be negative, got {max_iterations}"
        raise ValueError(msg)
    if epsilon <= 0:
        msg = f"epsilon must be positive, got {epsilon}"
        raise ValueError(msg)


def _apply(
    *,
    state: AllocationState,
    raw_allocations: NDArray[np.float64],
) -> float:
    """Normalize, store, and record the cost of the new allocation."""
    state.assign(allocations=normalize(allocations=raw_allocations))
    current_cost = cost(state=state)
    state.record(cost=current_cost)
    return current_cost


def _result(
    *,
    name: str,
    state: AllocationState,
    converged_at: int | None,
    max_difference: float,
) -> AlgorithmResult:
    return AlgorithmResult(
        name=name,
        allocations=tuple(node.allocation for node in state.nodes),
        cost=cost(state=state),
        iterations=len(state.cost_history),
        converged_at=converged_at,
        max_difference=max_difference,
    )


def gradient_walk(
    *,
    state: AllocationState,
    step_size: float = 0.01,
    max_iterations: int = 1500,
    epsilon: float = 1e-5,
    max_workers: int | None = None,
) -> AlgorithmResult:
    """Equalize marginal costs with a uniform first-order step.

    Each iteration moves every node against its deviation from the
    arithmetic mean marginal cost: ``x_i -= step_size * (d_i - mean)``.
    Nodes with above-average marginal cost shrink, the others grow.

    Args:
        state: State to optimize in place; owned by this call.
        step_size: Uniform step size alpha.
        max_iterations: Iteration budget.
        epsilon: Convergence tolerance on ``max_i |d_i - mean|``.
        max_workers: Size of the fork-join thread pool.

    Returns:
        Final snapshot of the run. Exhausting the budget is not an error.

    Raises:
        ValueError: If a parameter is out of range.
    """
    _validate_parameters(
        step_size=step_size, max_iterations=max_iterations, epsilon=epsilon
    )
    converged_at: int | None = None
    max_difference = math.inf

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        for iteration in range(max_iterations):
            derivatives = _fork_join(
                executor=executor, state=state, measure=first_derivative
            )
            mean = float(derivatives.mean())
            max_difference = float(np.max(np.abs(derivatives - mean)))

            if max_difference < epsilon:
                converged_at = iteration
                logger.info("%s converged at iteration %d", GRADIENT, iteration)
                break

            current_cost = _apply(
                state=state,
                raw_allocations=state.allocations
                - step_size * (derivatives - mean),
            )
            if iteration % _PROGRESS_EVERY[GRADIENT] == 0:
                logger.debug(
                    "%s iteration %d: cost=%.4f max_difference=%.6f",
                    GRADIENT,
                    iteration,
                    current_cost,
                    max_difference,
                )
        else:
            logger.debug(
                "%s stopped after %d iterations without converging",
                GRADIENT,
                max_iterations,
            )

    return _result(
        name=GRADIENT,
        state=state,
        converged_at=converged_at,
        max_difference=max_difference,
    )


def newton_walk(
    *,
    state: AllocationState,
    step_size: float = 0.005,
    max_iterations: int = 1000,
    epsilon: float = 1e-5,
    max_workers: int | None = None,
) -> AlgorithmResult:
    """Equalize marginal costs with per-node curvature-scaled steps.

    Each node's step is scaled by its inverse second derivative ``k_i``, and
    deviations are measured against the curvature-weighted mean
    ``sum(k_i * d_i) / sum(k_i)``: ``x_i -= step_size * k_i * (d_i - mean)``.
    Flatter cost surfaces receive larger corrections, so this usually needs
    fewer iterations than `gradient_walk`.

    Args:
        state: State to optimize in place; owned by this call.
        step_size: Base step size alpha.
        max_iterations: Iteration budget.
        epsilon: Convergence tolerance on ``max_i |d_i - weighted_mean|``.
        max_workers: Size of the fork-join thread pool.

    Returns:
        Final snapshot of the run. Exhausting the budget is not an error.

    Raises:
        ValueError: If a parameter is out of range.
    """
    _validate_parameters(
        step_size=step_size, max_iterations=max_iterations, epsilon=epsilon
    )
    converged_at: int | None = None
    max_difference = math.inf

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        for iteration in range(max_iterations):
            measured = _fork_join(
                executor=executor, state=state, measure=_slope_and_curvature
            )
            derivatives, curvatures = measured[:, 0], measured[:, 1]
            curvature_total = float(curvatures.sum())
            if curvature_total == 0.0:  # no usable weights, fall back to plain mean
                weighted_mean = float(derivatives.mean())
            else:
                weighted_mean = float((curvatures * derivatives).sum()) / (
                    curvature_total
                )
            max_difference = float(np.max(np.abs(derivatives - weighted_mean)))

            if max_difference < epsilon:
                converged_at = iteration
                logger.info("%s converged at iteration %d", NEWTON, iteration)
                break

            current_cost = _apply(
                state=state,
                raw_allocations=state.allocations
                - step_size * curvatures * (derivatives - weighted_mean),
            )
            if iteration % _PROGRESS_EVERY[NEWTON] == 0:
                logger.debug(
                    "%s iteration %d: cost=%.4f max_difference=%.6f",
                    NEWTON,
                    iteration,
                    current_cost,
                    max_difference,
                )
        else:
            logger.debug(
                "%s stopped after %d iterations without converging",
                NEWTON,
                max_iterations,
            )

    return _result(
        name=NEWTON,
        state=state,
        converged_at=converged_at,
        max_difference=max_difference,
    )


def pairwise_walk(
    *,
    state: AllocationState,
    topology: nx.MultiGraph,
    step_size: float = 0.02,
    max_iterations: int = 500,
    epsilon: float = 1e-5,
    max_workers: int | None = None,
) -> AlgorithmResult:
    """Equalize marginal costs through bilateral transfers along edges.

    Models decentralized negotiation: a node only trades allocation with its
    direct neighbours. Across every edge ``(i, j)`` the transfer
    ``-step_size * k_i * k_j / (k_i + k_j) * (d_i - d_j)`` is credited to
    ``i`` and debited from ``j``, so each exchange conserves mass.

    Note:
        Convergence only requires ``|d_i - d_j| < epsilon`` across the edges
        of `topology`. Components of a disconnected topology can each settle
        at their own marginal-cost level, which is not a global equilibrium.

    Args:
        state: State to optimize in place; owned by this call.
        topology: Interaction graph over the state's node ids. Duplicate
            edges exchange once per copy.
        step_size: Exchange step size alpha.
        max_iterations: Iteration budget.
        epsilon: Convergence tolerance per edge.
        max_workers: Size of the fork-join thread pool.

    Returns:
        Final snapshot of the run. Exhausting the budget is not an error.

    Raises:
        ValueError: If a parameter is out of range or `topology` references
            a node id the state does not have.
    """
    _validate_parameters(
        step_size=step_size, max_iterations=max_iterations, epsilon=epsilon
    )
    node_count = len(state.nodes)
    unknown = sorted(n for n in topology.nodes if not 0 <= n < node_count)
    if unknown:
        msg = f"topology references unknown node(s): {unknown}"
        raise ValueError(msg)
    # Nodes missing from the graph are isolated components of their own.
    coverage = nx.MultiGraph(topology)
    coverage.add_nodes_from(range(node_count))
    if not nx.is_connected(coverage):
        logger.warning(
            "topology is disconnected (%d components), convergence will be"
            " local to each component",
            nx.number_connected_components(coverage),
        )

    converged_at: int | None = None
    max_difference = math.inf

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        for iteration in range(max_iterations):
            measured = _fork_join(
                executor=executor, state=state, measure=_slope_and_curvature
            )
            derivatives, curvatures = measured[:, 0], measured[:, 1]

            deltas = np.zeros(node_count, dtype=np.float64)
            for i, j in topology.edges():
                k_i, k_j = curvatures[i], curvatures[j]
                if k_i + k_j == 0.0:
                    continue
                weight = (k_i * k_j) / (k_i + k_j)
                exchange = -step_size * weight * (derivatives[i] - derivatives[j])
                deltas[i] += exchange
                deltas[j] -= exchange

            differences = edge_differences(topology=topology, derivatives=derivatives)
            max_difference = max(differences, default=0.0)

            if max_difference < epsilon:
                converged_at = iteration
                logger.info("%s converged at iteration %d", PAIRWISE, iteration)
                break

            current_cost = _apply(
                state=state,
                raw_allocations=state.allocations + deltas,
            )
            if iteration % _PROGRESS_EVERY[PAIRWISE] == 0:
                logger.debug(
                    "%s iteration %d: cost=%.4f", PAIRWISE, iteration, current_cost
                )
        else:
            logger.debug(
                "%s stopped after %d iterations without converging",
                PAIRWISE,
                max_iterations,
            )

    return _result(
        name=PAIRWISE,
        state=state,
        converged_at=converged_at,
        max_difference=float(max_difference),
    )
