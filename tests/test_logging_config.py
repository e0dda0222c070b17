# tests/test_logging_config.py
"""Tests for settings defaults and stdlib → loguru log routing."""

import logging

from loguru import logger

from gst_compliance.core.config import Settings
from gst_compliance.core.logging_config import setup_logging


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    s = Settings(_env_file=None)
    assert s.HOME_CURRENCY == "INR"
    assert s.DATABASE_URL.startswith("postgresql+asyncpg://")


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("DB_ECHO", "true")
    s = Settings(_env_file=None)
    assert s.LOG_LEVEL == "DEBUG"
    assert s.DB_ECHO is True


def test_stdlib_records_reach_loguru():
    setup_logging("INFO")
    captured = []
    sink_id = logger.add(captured.append, level="INFO", format="{message}")
    try:
        logging.getLogger("period_summary").info("summary ready for %s", "2025-01")
        logging.getLogger("period_summary").debug("not shown")
    finally:
        logger.remove(sink_id)

    messages = [str(m).strip() for m in captured]
    assert messages == ["summary ready for 2025-01"]
