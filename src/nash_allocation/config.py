"""System configuration loaded once at startup from a JSON file."""

import json
from pathlib import Path

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    ValidationError,
    model_validator,
)

__all__ = [
    "AlgorithmSettings",
    "ConfigurationError",
    "SystemConfig",
    "load_config",
]


class ConfigurationError(ValueError):
    """Raised when the configuration is missing or malformed."""


class AlgorithmSettings(BaseModel):
    """Step size, iteration budget and tolerance of one algorithm run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    step_size: PositiveFloat = Field(
        validation_alias=AliasChoices("step_size", "stepSize", "alpha")
    )
    max_iterations: int = Field(
        ge=0, validation_alias=AliasChoices("max_iterations", "maxIterations")
    )
    epsilon: PositiveFloat = 1e-5


def _gradient_defaults() -> AlgorithmSettings:
    return AlgorithmSettings(step_size=0.01, max_iterations=1500, epsilon=1e-5)


def _newton_defaults() -> AlgorithmSettings:
    return AlgorithmSettings(step_size=0.005, max_iterations=1000, epsilon=1e-5)


def _pairwise_defaults() -> AlgorithmSettings:
    return AlgorithmSettings(step_size=0.02, max_iterations=500, epsilon=1e-5)


class SystemConfig(BaseModel):
    """Validated run configuration.

    Accepts snake_case keys as well as the camelCase and short forms
    (``mu``, ``lambdas``, ``K``) used by older configuration files.
    ``topology`` defaults to the complete graph over all nodes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_rate: PositiveFloat = Field(
        validation_alias=AliasChoices("service_rate", "serviceRate", "mu")
    )
    arrival_rates: list[PositiveFloat] = Field(
        min_length=1,
        validation_alias=AliasChoices("arrival_rates", "arrivalRates", "lambdas"),
    )
    weight_factor: PositiveFloat = Field(
        validation_alias=AliasChoices("weight_factor", "weightFactor", "K")
    )
    topology: list[tuple[int, int]] | None = None
    gradient: AlgorithmSettings = Field(default_factory=_gradient_defaults)
    newton: AlgorithmSettings = Field(default_factory=_newton_defaults)
    pairwise: AlgorithmSettings = Field(default_factory=_pairwise_defaults)
    max_workers: int | None = Field(
        default=None,
        ge=1,
        validation_alias=AliasChoices("max_workers", "maxWorkers"),
    )

    @model_validator(mode="after")
    def _check_topology(self) -> "SystemConfig":
        if self.topology is None:
            return self
        node_count = len(self.arrival_rates)
        for from_node, to_node in self.topology:
            if not (0 <= from_node < node_count and 0 <= to_node < node_count):
                msg = (
                    f"topology edge ({from_node}, {to_node}) references a node"
                    f" outside 0..{node_count - 1}"
                )
                raise ValueError(msg)
            if from_node == to_node:
                msg = f"topology edge ({from_node}, {to_node}) is a self-loop"
                raise ValueError(msg)
        return self

    @property
    def node_count(self) -> int:
        return len(self.arrival_rates)


def load_config(path: str | Path) -> SystemConfig:
    """Read and validate a JSON configuration file.

    Args:
        path: Location of the JSON file.

    Returns:
        The validated configuration.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid JSON,
            or does not describe a valid system.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"cannot read configuration file {path}: {exc}"
        raise ConfigurationError(msg) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"configuration file {path} is not valid JSON: {exc}"
        raise ConfigurationError(msg) from exc

    try:
        return SystemConfig.model_validate(data)
    except ValidationError as exc:
        msg = f"invalid configuration in {path}: {exc}"
        raise ConfigurationError(msg) from exc
