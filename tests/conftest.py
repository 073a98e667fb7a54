"""Pytest configuration for webhook tests."""

import pytest


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch):
    """Keep WORKPLACE_WEBHOOK_* variables from the host out of every test."""
    for name in ("SECRET", "ACCESS_TOKEN", "VERIFICATION_TOKEN", "HOST", "PORT",
                 "ROUTING_MODE", "CALLBACK_PATH", "SIGNATURE_HEADER"):
        monkeypatch.delenv(f"WORKPLACE_WEBHOOK_{name}", raising=False)
