"""
Pytest configuration and fixtures.
"""
from typing import Iterator

import pytest

from order_system.checkout import CheckoutService
from order_system.config import Settings, get_settings
from order_system.inventory import InventoryLedger
from order_system.payments import PaymentSimulation


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast, isolated tests")
    config.addinivalue_line("markers", "race: concurrent access tests")


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        app_name="order-system-test",
        app_env="test",
        log_level="DEBUG",
        log_format="console",
        payment_latency_scale=0.0,
        random_seed=1234,
    )


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """Settings are lru_cached; never leak environment between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ledger() -> InventoryLedger:
    """Fresh ledger seeded with the default stock."""
    return InventoryLedger()


@pytest.fixture
def instant_simulation() -> PaymentSimulation:
    """No latency; success sampled from a seeded RNG."""
    return PaymentSimulation.instant(seed=42)


@pytest.fixture
def approving_simulation() -> PaymentSimulation:
    """No latency; every payment succeeds."""
    return PaymentSimulation.instant(succeed=True)


@pytest.fixture
def declining_simulation() -> PaymentSimulation:
    """No latency; every payment is declined."""
    return PaymentSimulation.instant(succeed=False)


@pytest.fixture
def checkout_service(ledger: InventoryLedger, approving_simulation: PaymentSimulation) -> CheckoutService:
    """Checkout service whose payments always go through."""
    return CheckoutService(ledger, approving_simulation)
