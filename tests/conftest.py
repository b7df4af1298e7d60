"""
conftest.py - Shared pytest fixtures for debt engine tests

Provides common fixtures used across unit, functional and conformance tests:
- Default configuration and a settings callable
- Collaborator fakes (reserves, notifier, enforcer)
- A wired book, office and engine
"""

import pytest
from hypothesis import HealthCheck
from hypothesis import settings as hypothesis_settings

from debt_collector import DebtBook, DebtConfig, LifecycleEngine, LoanOffice

from tests.fakes import FakeEnforcer, FakeNotifier, FakeReserves, Settings

# Hypothesis builds its unicode cache on first use, which can trip the
# too_slow health check on a fresh checkout.
hypothesis_settings.register_profile(
    "default", suppress_health_check=[HealthCheck.too_slow]
)
hypothesis_settings.load_profile("default")


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def config():
    return DebtConfig()


@pytest.fixture
def settings(config):
    return Settings(config)


@pytest.fixture
def book():
    return DebtBook()


@pytest.fixture
def home():
    """Home reserves with enough for several payments but not a payoff-and-tribute."""
    return FakeReserves(5000)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def enforcer():
    return FakeEnforcer()


@pytest.fixture
def office(book, settings, notifier, home):
    return LoanOffice(book, settings, notifier, home)


@pytest.fixture
def engine(book, settings, notifier, enforcer):
    return LifecycleEngine(book, settings, notifier, enforcer)


@pytest.fixture
def borrowed(office, book):
    """A 1000 loan taken at tick 0."""
    result = office.request_loan(1000, now=0)
    assert result.ok
    return book
