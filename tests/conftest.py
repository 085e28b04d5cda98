"""
Test configuration and fixtures for the queue gateway.
This centralizes all test setup, making individual tests clean.
"""

from unittest.mock import MagicMock

import pytest

from fibonatix_queue.config import AppConfig
from fibonatix_queue.registry import ServiceRegistry

# Keys the gateway reads; cleared so the developer's shell can't leak in
GATEWAY_ENV_VARS = [
    "TRANSFORM",
    "CONNECTIONSTRING",
    "PASSWORD",
    "ALGORITHM",
    "SERVICE",
    "CONNECTIONSTRINGS__LOCALDBTESTING__BLOB",
    "CONNECTIONSTRINGS__LOCALDBTESTING__QUEUE",
    "ENVIRONMENT",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in GATEWAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_config():
    """
    Build an AppConfig from explicit values only (no .env file).

    Keys are passed by their configuration names, the same way the
    environment provides them.
    """
    def _make(
        transform="false",
        connection_string="cs1",
        password="p1",
        algorithm=None,
        service="Redis",
        blob=None,
        queue=None,
        **extra
    ) -> AppConfig:
        values = {
            "Transform": transform,
            "ConnectionString": connection_string,
            "Password": password,
            "Algorithm": algorithm,
            "Service": service,
            "ConnectionStrings:LocalDBTesting:blob": blob,
            "ConnectionStrings:LocalDBTesting:queue": queue,
        }
        values.update(extra)
        return AppConfig(_env_file=None, **values)

    return _make


@pytest.fixture
def registry():
    """Fresh registry, shut down after the test."""
    registry = ServiceRegistry()
    yield registry
    registry.shutdown()


@pytest.fixture
def credential():
    """Stand-in for DefaultAzureCredential (identity path)."""
    return MagicMock(name="credential")
