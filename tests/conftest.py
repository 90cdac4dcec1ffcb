from __future__ import annotations

import logging
from datetime import date

import pytest

from metabase_reporter.config import build_config
from metabase_reporter.logging_setup import LOGGER_NAME

TODAY = date(2024, 3, 7)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_config(tmp_path):
    """Config with fast timings rooted in tmp_path."""
    def _make(**overrides):
        values = dict(
            url="https://metabase.example.com/public/dashboard/abc",
            title="Weekly Sales",
            reports_dir=tmp_path / "reports",
            download_dir=tmp_path / "downloads",
            wait_time_ms=1,
            export_delay_ms=0,
            download_timeout_ms=200,
            poll_interval_ms=10,
        )
        values.update(overrides)
        return build_config(**values)
    return _make


@pytest.fixture
def no_sleep():
    calls = []

    def _sleep(seconds):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """CLI tests call setup_logging(); undo it so caplog sees records."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
