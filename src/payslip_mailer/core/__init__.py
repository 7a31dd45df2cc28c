"""Core utilities for configuration, logging, and shared primitives."""

from .cancellation import CancellationToken, SystemClock
from .config import (
    AppSettings,
    DispatchProfile,
    EmailServerConfig,
    LoggingSettings,
    load_app_settings,
)
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "CancellationToken",
    "DispatchProfile",
    "EmailServerConfig",
    "LoggingSettings",
    "SystemClock",
    "configure_logging",
    "load_app_settings",
]
