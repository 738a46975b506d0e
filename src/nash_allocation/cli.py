"""Command-line driver comparing the three allocation algorithms."""

import argparse
import logging
from pathlib import Path

from nash_allocation.config import ConfigurationError, load_config
from nash_allocation.plotting import (
    plot_allocation_evolution,
    plot_allocations,
    plot_convergence,
    plot_derivatives,
)
from nash_allocation.reporting import format_comparison, format_final_state
from nash_allocation.runner import ComparisonResult, run_comparison

__all__ = [
    "build_parser",
    "main",
]

logger = logging.getLogger(__name__)

EXIT_CONFIGURATION_ERROR = 2


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nash-allocation",
        description=(
            "Compare gradient, Newton and pairwise resource allocation"
            " towards a marginal-cost equilibrium."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.json"),
        help="JSON configuration file (default: config.json)",
    )
    parser.add_argument(
        "--plots-dir",
        type=Path,
        default=Path("plots"),
        help="directory receiving the charts (default: plots)",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="skip chart generation",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    return parser


def _write_plots(comparison: ComparisonResult, plots_dir: Path) -> None:
    plot_convergence(runs=comparison.runs, path=plots_dir / "convergence.png")
    plot_allocations(runs=comparison.runs, path=plots_dir / "allocations.png")
    plot_derivatives(runs=comparison.runs, path=plots_dir / "derivatives.png")
    for name, run in comparison.runs.items():
        plot_allocation_evolution(
            run=run, path=plots_dir / f"allocation_evolution_{name}.png"
        )
    logger.info("charts written to %s", plots_dir)


def main(argv: list[str] | None = None) -> int:
    """Load the configuration, run every algorithm and report the outcome.

    Args:
        argv: Command-line arguments; `None` reads `sys.argv`.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level)

    try:
        config = load_config(args.config)
    except ConfigurationError:
        logger.exception("aborting before any algorithm runs")
        return EXIT_CONFIGURATION_ERROR

    logger.info(
        "nodes=%d arrival_rates=%s service_rate=%.2f weight_factor=%.2f",
        config.node_count,
        config.arrival_rates,
        config.service_rate,
        config.weight_factor,
    )

    comparison = run_comparison(config=config)
    for name, run in comparison.runs.items():
        print(format_final_state(state=run.state, name=name))  # noqa: T201
        print()  # noqa: T201
    print(format_comparison(comparison=comparison))  # noqa: T201

    if not args.no_plots:
        _write_plots(comparison, args.plots_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
