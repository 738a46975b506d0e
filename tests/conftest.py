import math

import matplotlib
import pytest

from nash_allocation.config import AlgorithmSettings, SystemConfig
from nash_allocation.state import AllocationState, create_state

matplotlib.use("Agg")

# Interior equilibrium exists for these rates: every closed-form allocation
# lies strictly inside the clamp interval.
BALANCED_ARRIVAL_RATES = [0.3, 0.25, 0.35, 0.2]
REFERENCE_ARRIVAL_RATES = [0.3, 0.2, 0.4, 0.1]
SERVICE_RATE = 1.5
WEIGHT_FACTOR = 1.0


def closed_form_equilibrium(
    *,
    arrival_rates: list[float],
    service_rate: float,
) -> list[float]:
    """Allocation equalizing ``lambda_i / (mu - sum(lambda) * x_i) ** 2``."""
    total = sum(arrival_rates)
    scale = (len(arrival_rates) * service_rate - total) / sum(
        math.sqrt(rate) for rate in arrival_rates
    )
    return [
        (service_rate - math.sqrt(rate) * scale) / total for rate in arrival_rates
    ]


@pytest.fixture
def balanced_state() -> AllocationState:
    """Four nodes whose equilibrium is reachable inside the simplex."""
    return create_state(
        arrival_rates=BALANCED_ARRIVAL_RATES,
        service_rate=SERVICE_RATE,
        weight_factor=WEIGHT_FACTOR,
    )


@pytest.fixture
def reference_state() -> AllocationState:
    """Four nodes, lambda = [0.3, 0.2, 0.4, 0.1], mu = 1.5, K = 1."""
    return create_state(
        arrival_rates=REFERENCE_ARRIVAL_RATES,
        service_rate=SERVICE_RATE,
        weight_factor=WEIGHT_FACTOR,
    )


@pytest.fixture
def balanced_equilibrium() -> list[float]:
    return closed_form_equilibrium(
        arrival_rates=BALANCED_ARRIVAL_RATES, service_rate=SERVICE_RATE
    )


@pytest.fixture
def balanced_config() -> SystemConfig:
    """Configuration with step sizes that converge quickly on the balanced rates."""
    return SystemConfig(
        service_rate=SERVICE_RATE,
        arrival_rates=BALANCED_ARRIVAL_RATES,
        weight_factor=WEIGHT_FACTOR,
        gradient=AlgorithmSettings(step_size=0.1, max_iterations=2000, epsilon=1e-5),
        newton=AlgorithmSettings(step_size=0.2, max_iterations=500, epsilon=1e-5),
        pairwise=AlgorithmSettings(step_size=0.1, max_iterations=3000, epsilon=1e-5),
    )
