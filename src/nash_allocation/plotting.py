"""Charts of cost convergence, final allocations and marginal costs."""

import math
from collections.abc import Mapping
from pathlib import Path
from typing import Final

import matplotlib.pyplot as plt
import numpy as np

from nash_allocation.cost_model import first_derivatives
from nash_allocation.reporting import DISPLAY_NAMES
from nash_allocation.runner import AlgorithmRun

__all__ = [
    "plot_allocation_evolution",
    "plot_allocations",
    "plot_convergence",
    "plot_derivatives",
]

_COLORS: Final = ("red", "green", "blue", "black", "orange", "purple")
_BAR_WIDTH: Final = 0.8


def _save(path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(target, dpi=150)
    plt.close()
    return target


def plot_convergence(
    *,
    runs: Mapping[str, AlgorithmRun],
    path: str | Path,
) -> Path:
    """Plot total cost per iteration of every run on a log scale.

    Iterations with an infinite (unstable) cost are left as gaps.

    Args:
        runs: Algorithm runs keyed by algorithm name.
        path: Output PNG file; parent directories are created.

    Returns:
        The written file.
    """
    plt.figure(figsize=(8, 6))
    for color, (name, run) in zip(_COLORS, runs.items(), strict=False):
        history = np.array(run.state.cost_history, dtype=np.float64)
        history[~np.isfinite(history)] = np.nan
        plt.plot(
            np.arange(len(history)),
            history,
            color=color,
            linewidth=2,
            label=DISPLAY_NAMES.get(name, name),
        )

    plt.yscale("log")
    plt.title("Algorithm convergence")
    plt.xlabel("Iteration")
    plt.ylabel("Total cost")
    plt.grid(True, alpha=0.3)
    plt.legend(loc="upper right")
    return _save(path)


def _grouped_bars(
    *,
    series: Mapping[str, list[float]],
    node_count: int,
) -> None:
    positions = np.arange(node_count)
    width = _BAR_WIDTH / max(len(series), 1)
    for offset, (color, (name, values)) in enumerate(
        zip(_COLORS, series.items(), strict=False)
    ):
        plt.bar(
            positions + (offset - (len(series) - 1) / 2) * width,
            values,
            width=width,
            color=color,
            label=DISPLAY_NAMES.get(name, name),
        )
    plt.xticks(positions, [f"Node{i}" for i in range(node_count)])


def plot_allocations(
    *,
    runs: Mapping[str, AlgorithmRun],
    path: str | Path,
) -> Path:
    """Grouped bar chart of the final allocation of every node per run."""
    node_count = max((len(run.result.allocations) for run in runs.values()), default=0)
    plt.figure(figsize=(8, 6))
    _grouped_bars(
        series={name: list(run.result.allocations) for name, run in runs.items()},
        node_count=node_count,
    )
    plt.title("Final allocation per node")
    plt.xlabel("Node")
    plt.ylabel("Allocation (x)")
    plt.grid(True, axis="y", alpha=0.3)
    plt.legend()
    return _save(path)


def plot_derivatives(
    *,
    runs: Mapping[str, AlgorithmRun],
    path: str | Path,
) -> Path:
    """Bar chart of final marginal costs; equal bars indicate equilibrium."""
    node_count = max((len(run.state.nodes) for run in runs.values()), default=0)
    series = {}
    for name, run in runs.items():
        derivatives = first_derivatives(state=run.state)
        series[name] = [
            value if math.isfinite(value) else 0.0 for value in derivatives
        ]
    plt.figure(figsize=(8, 6))
    _grouped_bars(series=series, node_count=node_count)
    plt.title("Final marginal cost per node")
    plt.xlabel("Node")
    plt.ylabel("dU/dx")
    plt.grid(True, axis="y", alpha=0.3)
    plt.legend()
    return _save(path)


def plot_allocation_evolution(
    *,
    run: AlgorithmRun,
    path: str | Path,
) -> Path:
    """Plot every node's allocation across the iterations of one run."""
    history = np.array(run.state.allocation_history, dtype=np.float64)
    plt.figure(figsize=(8, 6))
    if history.size:
        for node in run.state.nodes:
            plt.plot(
                np.arange(history.shape[0]),
                history[:, node.id],
                linewidth=1.5,
                label=f"Node{node.id} (lambda={node.arrival_rate:.2f})",
            )
    name = run.result.name
    plt.title(f"Allocation evolution ({DISPLAY_NAMES.get(name, name)})")
    plt.xlabel("Iteration")
    plt.ylabel("Allocation (x)")
    plt.grid(True, alpha=0.3)
    if history.size:
        plt.legend()
    return _save(path)
