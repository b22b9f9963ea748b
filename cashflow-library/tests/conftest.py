"""Shared fixtures for the cashflow library tests."""

import pytest

from cashflows.settings import reset_settings


@pytest.fixture(autouse=True)
def _default_settings():
    """Every test starts from (and leaves behind) environment-derived settings."""
    reset_settings()
    yield
    reset_settings()
