"""Tests for logging utilities."""

from __future__ import annotations

import logging

from loops_ai.core.config import LoggingSettings
from loops_ai.core.logging import configure_logging


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_transport_loggers_are_quieted_outside_debug() -> None:
    configure_logging(LoggingSettings(level="info", structured=True))

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING


def test_structured_flag_selects_brace_style_text_format() -> None:
    configure_logging(LoggingSettings(level="INFO", structured=True))

    formatter = logging.getLogger().handlers[0].formatter
    record = logging.LogRecord("loops", logging.INFO, __file__, 1, "hello", None, None)
    line = formatter.format(record)

    assert line.endswith("INFO loops hello")
    assert not line.startswith("{")
    description = LoggingSettings.model_fields["structured"].description
    assert "JSON" not in (description or "")
