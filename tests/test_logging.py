"""Tests for logging utilities."""

from __future__ import annotations

import logging

from payslip_mailer.core.config import LoggingSettings
from payslip_mailer.core.logging import _structured_formatter, configure_logging


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_third_party_loggers_are_quietened() -> None:
    configure_logging(LoggingSettings(level="INFO", structured=True))
    assert logging.getLogger("fpdf").level == logging.WARNING
    assert logging.getLogger().level == logging.INFO


def test_structured_format_uses_brace_style() -> None:
    fragment = _structured_formatter()
    formatter = logging.Formatter(fragment["format"], style=fragment["style"])
    record = logging.LogRecord(
        "payslip_mailer.test", logging.INFO, __file__, 1, 'sent "quoted"', None, None
    )
    line = formatter.format(record)
    assert line.endswith('INFO payslip_mailer.test sent "quoted"')
