"""Plain-text summaries of finished algorithm runs."""

from typing import Final

from nash_allocation.algorithms import GRADIENT, NEWTON, PAIRWISE
from nash_allocation.cost_model import cost
from nash_allocation.runner import ComparisonResult
from nash_allocation.state import AllocationState

__all__ = [
    "DISPLAY_NAMES",
    "format_comparison",
    "format_final_state",
]

DISPLAY_NAMES: Final = {
    GRADIENT: "First Derivative",
    NEWTON: "Second Derivative",
    PAIRWISE: "Pairwise",
}

_RULE_WIDTH: Final = 60


def format_final_state(
    *,
    state: AllocationState,
    name: str,
) -> str:
    """Describe the final allocation of every node and the final cost.

    Args:
        state: State after an algorithm run.
        name: Algorithm identifier used as heading.

    Returns:
        Multi-line report, one line per node.
    """
    lines = [f"Final allocations ({DISPLAY_NAMES.get(name, name)}):"]
    lines.extend(
        f"  Node{node.id} (lambda={node.arrival_rate:.2f}): x={node.allocation:.3f}"
        for node in state.nodes
    )
    lines.append(f"Final cost: {cost(state=state):.4f}")
    return "\n".join(lines)


def format_comparison(
    *,
    comparison: ComparisonResult,
) -> str:
    """Tabulate iterations, final cost and convergence of every run."""
    header = f"{'Algorithm':<20} {'Iterations':<12} {'Final cost':<12} Converged"
    lines = [
        "=" * _RULE_WIDTH,
        "Algorithm comparison",
        "=" * _RULE_WIDTH,
        header,
        "-" * _RULE_WIDTH,
    ]
    for name, run in comparison.runs.items():
        result = run.result
        converged = (
            f"at {result.converged_at}" if result.converged_at is not None else "no"
        )
        lines.append(
            f"{DISPLAY_NAMES.get(name, name):<20} {result.iterations:<12}"
            f" {result.cost:<12.4f} {converged}"
        )
    lines.append("=" * _RULE_WIDTH)
    best = comparison.best
    lines.append(f"Lowest cost: {DISPLAY_NAMES.get(best.name, best.name)}")
    return "\n".join(lines)
