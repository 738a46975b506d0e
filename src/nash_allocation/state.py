"""Node set, global parameters and mutable allocation of one optimization run."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NewType

import numpy as np
from numpy.typing import NDArray

__all__ = [
    "AllocationState",
    "AllocationVector",
    "Node",
    "create_state",
]

AllocationVector = NewType("AllocationVector", NDArray[np.float64])


@dataclass(slots=True)
class Node:
    """A service node sharing the resource pool.

    Attributes:
        id: Position of the node in its state, stable for the run.
        arrival_rate: External request rate directed at the node.
        service_rate: Maximum request-processing rate of the node.
        allocation: Fraction of the shared resource currently assigned.
    """

    id: int
    arrival_rate: float
    service_rate: float
    allocation: float


@dataclass(slots=True)
class AllocationState:
    """Mutable state owned by exactly one algorithm run.

    Attributes:
        nodes: Nodes in id order.
        weight_factor: Trade-off between delay cost and communication cost.
        total_arrival_rate: Sum of all arrival rates, fixed at construction.
        cost_history: One total cost per completed iteration.
        allocation_history: One allocation snapshot per completed iteration.
    """

    nodes: list[Node]
    weight_factor: float
    total_arrival_rate: float
    cost_history: list[float] = field(default_factory=list)
    allocation_history: list[tuple[float, ...]] = field(default_factory=list)

    @property
    def allocations(self) -> AllocationVector:
        """Current allocation of every node as a vector."""
        return AllocationVector(
            np.array([node.allocation for node in self.nodes], dtype=np.float64)
        )

    def assign(self, *, allocations: AllocationVector) -> None:
        """Overwrite every node's allocation.

        Args:
            allocations: New allocation per node, in id order.

        Raises:
            ValueError: If the vector length does not match the node count.
        """
        if len(allocations) != len(self.nodes):
            msg = (
                f"allocation vector has {len(allocations)} entries,"
                f" expected {len(self.nodes)}"
            )
            raise ValueError(msg)
        for node, value in zip(self.nodes, allocations, strict=True):
            node.allocation = float(value)

    def record(self, *, cost: float) -> None:
        """Append a completed iteration to the histories."""
        self.cost_history.append(cost)
        self.allocation_history.append(
            tuple(node.allocation for node in self.nodes)
        )


def create_state(
    *,
    arrival_rates: Sequence[float],
    service_rate: float,
    weight_factor: float,
) -> AllocationState:
    """Build a state with a uniform initial allocation of 1/n per node.

    Args:
        arrival_rates: One positive arrival rate per node.
        service_rate: Positive service rate shared by all nodes.
        weight_factor: Positive delay weight K.

    Returns:
        A fresh state with empty histories.

    Raises:
        ValueError: If no arrival rates are given or any parameter is not
            strictly positive.
    """
    if not arrival_rates:
        msg = "arrival_rates must not be empty"
        raise ValueError(msg)
    non_positive = [rate for rate in arrival_rates if rate <= 0]
    if non_positive:
        msg = f"arrival rates must be positive, got {non_positive}"
        raise ValueError(msg)
    if service_rate <= 0:
        msg = f"service_rate must be positive, got {service_rate}"
        raise ValueError(msg)
    if weight_factor <= 0:
        msg = f"weight_factor must be positive, got {weight_factor}"
        raise ValueError(msg)

    n = len(arrival_rates)
    nodes = [
        Node(
            id=i,
            arrival_rate=float(rate),
            service_rate=float(service_rate),
            allocation=1.0 / n,
        )
        for i, rate in enumerate(arrival_rates)
    ]
    return AllocationState(
        nodes=nodes,
        weight_factor=float(weight_factor),
        total_arrival_rate=sum(node.arrival_rate for node in nodes),
    )
