"""
Pytest fixtures for ledger engine tests.

Settings are cached process-wide; every test starts from a clean cache
and an environment without PALLET_LEDGER_* overrides.
"""

import os
from datetime import date

import pytest
from pallet_ledger.clock import fixed_clock
from pallet_ledger.config import get_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("PALLET_LEDGER_"):
            monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env out of the tests.
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock():
    """Mid-February 2026."""
    return fixed_clock(date(2026, 2, 14))
