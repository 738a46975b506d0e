"""Projection of raw allocation vectors back onto the unit simplex."""

from collections.abc import Sequence
from typing import Final

import numpy as np

from nash_allocation.state import AllocationVector

__all__ = [
    "MAX_ALLOCATION",
    "MIN_ALLOCATION",
    "normalize",
]

MIN_ALLOCATION: Final = 0.001
MAX_ALLOCATION: Final = 0.90


def normalize(
    *,
    allocations: Sequence[float] | AllocationVector,
) -> AllocationVector:
    """Clamp each component and rescale the vector so it sums to one.

    Clamping to ``[MIN_ALLOCATION, MAX_ALLOCATION]`` happens before the
    rescale, so no node is ever fully excluded or fully saturated and the
    cost function's denominators stay away from zero. After rescaling a
    component may drift slightly outside the clamp interval.

    Args:
        allocations: Raw per-node allocations, possibly off the simplex.

    Returns:
        Vector of the same length whose components sum to 1.0.

    Raises:
        ValueError: If `allocations` is empty.
    """
    raw = np.asarray(allocations, dtype=np.float64)
    if raw.size == 0:
        msg = "allocations must not be empty"
        raise ValueError(msg)

    clamped = np.clip(raw, MIN_ALLOCATION, MAX_ALLOCATION)
    return AllocationVector(clamped / clamped.sum())
