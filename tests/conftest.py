"""Shared pytest configuration for the test suite."""

from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

from genstats.core.records import Record
from genstats.core.time import TimeConfig


@pytest.fixture(autouse=True)
def reset_reference_timezone():
    """Restore the process-wide reference timezone after each test."""
    original = TimeConfig.get_reference_timezone_name()
    yield
    TimeConfig._reference_timezone = original


@pytest.fixture(autouse=True)
def clean_env():
    """Drop GENSTATS_* variables and cached settings around each test."""
    original_env = os.environ.copy()
    for var in [k for k in os.environ if k.startswith("GENSTATS_")]:
        del os.environ[var]

    import genstats.config.settings as settings_module

    settings_module._settings = None

    yield

    os.environ.clear()
    os.environ.update(original_env)
    settings_module._settings = None


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def sample_records() -> list[Record]:
    """Three runs over two days, the middle one without translation."""
    return [
        Record.create(utc(2023, 1, 1, 10, 0), {"enableTranslation": True, "buildTool": "maven"}),
        Record.create(utc(2023, 1, 1, 15, 0), {"enableTranslation": False, "buildTool": "gradle"}),
        Record.create(utc(2023, 1, 2, 3, 0), {"enableTranslation": True, "buildTool": "maven"}),
    ]
