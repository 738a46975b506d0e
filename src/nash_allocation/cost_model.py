"""Queueing cost of an allocation and its per-node derivatives.

Every node behaves as a queue whose effective completion rate shrinks as its
allocation grows: ``mu - sum(lambda) * x``. The total cost weighs each node's
mean response time against a flat communication cost, scaled by the node's
arrival rate. All functions here are pure reads of the state and may be
evaluated concurrently on an unmodified snapshot.
"""

import math
from typing import Final

import numpy as np

from nash_allocation.state import AllocationState, AllocationVector

__all__ = [
    "COMMUNICATION_COST",
    "MAX_STEP_SCALE",
    "STABILITY_THRESHOLD",
    "cost",
    "effective_rate",
    "first_derivative",
    "first_derivatives",
    "inverse_second_derivative",
]

STABILITY_THRESHOLD: Final = 0.01
COMMUNICATION_COST: Final = 0.5
MAX_STEP_SCALE: Final = 5.0


def effective_rate(
    *,
    state: AllocationState,
    index: int,
) -> float:
    """Return ``mu - sum(lambda) * x`` for the node at `index`."""
    node = state.nodes[index]
    return node.service_rate - state.total_arrival_rate * node.allocation


def cost(
    *,
    state: AllocationState,
) -> float:
    """Compute the total system cost of the current allocation.

    Each node contributes ``(COMMUNICATION_COST + K / effective_rate) *
    lambda``. An allocation that drives any node's effective rate to or
    below `STABILITY_THRESHOLD` is infeasible and costs ``math.inf``.

    Args:
        state: The state to evaluate.

    Returns:
        Total cost, or ``math.inf`` for an unstable allocation.
    """
    total = 0.0
    for index, node in enumerate(state.nodes):
        rate = effective_rate(state=state, index=index)
        if rate <= STABILITY_THRESHOLD:
            return math.inf
        response_time = 1.0 / rate
        total += (COMMUNICATION_COST + state.weight_factor * response_time) * (
            node.arrival_rate
        )
    return total


def first_derivative(
    *,
    state: AllocationState,
    index: int,
) -> float:
    """Marginal cost of the allocation of node `index`.

    Equal marginal costs across all nodes is the equilibrium condition the
    allocation algorithms drive towards.

    Args:
        state: The state to evaluate.
        index: Node position in `state.nodes`.

    Returns:
        ``K * lambda_i * sum(lambda) / effective_rate_i ** 2``; ``math.inf``
        when the effective rate is exactly zero.
    """
    rate = effective_rate(state=state, index=index)
    numerator = (
        state.weight_factor
        * state.nodes[index].arrival_rate
        * state.total_arrival_rate
    )
    if rate == 0.0:
        return math.inf
    return numerator / (rate * rate)


def inverse_second_derivative(
    *,
    state: AllocationState,
    index: int,
) -> float:
    """Curvature-based step scale for node `index`.

    Returns ``1 / (2 * K * lambda_i * sum(lambda) ** 2 / effective_rate_i **
    3)``, capped at `MAX_STEP_SCALE`. A second derivative of exactly zero
    carries no curvature information and yields 1.0.

    Args:
        state: The state to evaluate.
        index: Node position in `state.nodes`.

    Returns:
        The inverse curvature, at most `MAX_STEP_SCALE`.
    """
    rate = effective_rate(state=state, index=index)
    numerator = (
        2.0
        * state.weight_factor
        * state.nodes[index].arrival_rate
        * state.total_arrival_rate**2
    )
    if rate == 0.0:
        second_derivative = math.inf
    else:
        second_derivative = numerator / (rate * rate * rate)

    if second_derivative == 0.0:
        return 1.0
    return min(1.0 / second_derivative, MAX_STEP_SCALE)


def first_derivatives(
    *,
    state: AllocationState,
) -> AllocationVector:
    """Marginal cost of every node, in id order."""
    return AllocationVector(
        np.array(
            [
                first_derivative(state=state, index=index)
                for index in range(len(state.nodes))
            ],
            dtype=np.float64,
        )
    )
