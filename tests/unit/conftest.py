"""Shared pytest fixtures for unit tests."""

from unittest.mock import MagicMock

import pytest

from rabbitmq_declarative.providers import InMemoryRabbitmqUserProvider, Provider
from rabbitmq_declarative.resource_types import RABBITMQ_USER
from rabbitmq_declarative.services import ReconciliationEngine


@pytest.fixture
def schema():
    """The rabbitmq_user schema."""
    return RABBITMQ_USER


@pytest.fixture
def broker():
    """An empty in-memory broker."""
    return InMemoryRabbitmqUserProvider()


@pytest.fixture
def mock_provider():
    """A provider mock reporting an existing, converged user by default."""
    provider = MagicMock(spec=Provider)
    provider.exists.return_value = True
    provider.check_secret.return_value = True

    def read(identity, property_name):
        return {"admin": "false", "tags": []}[property_name]

    provider.read.side_effect = read
    return provider


@pytest.fixture
def metrics():
    """A metrics collector mock so tests do not depend on global counters."""
    return MagicMock()


@pytest.fixture
def engine(metrics):
    """An engine that applies changes."""
    return ReconciliationEngine([RABBITMQ_USER], noop=False, metrics=metrics)


@pytest.fixture
def noop_engine(metrics):
    """An engine that only reports changes."""
    return ReconciliationEngine([RABBITMQ_USER], noop=True, metrics=metrics)
