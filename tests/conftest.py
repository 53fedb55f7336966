"""Pytest configuration and shared fixtures."""

import pytest


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_timeout_env(monkeypatch):
    """Keep a developer's DUPLEX_RPC_TIMEOUT_MS out of test defaults."""
    monkeypatch.delenv("DUPLEX_RPC_TIMEOUT_MS", raising=False)
