"""Application configuration models and loader utilities."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

LOGGER = logging.getLogger(__name__)

DEFAULT_NUMERIC_MARKERS: tuple[str, ...] = (
    "Pay",
    "OT",
    "Bonus",
    "Allowance",
    "SSS",
    "HDMF",
    "PHIC",
    "Absences",
    "Undertime",
    "Deduction",
    "Earnings",
    "Tax",
    "Differential",
    "Premium",
    "Loan",
    "Refund",
    "Grant",
    "Reimbursement",
    "Adjustment",
    "Advances",
    "ECC",
    "Provident",
    "14th Month",
)


class DispatchProfile(BaseModel):
    """Pacing options applied to one bulk dispatch run."""

    model_config = ConfigDict(frozen=True)

    batch_size: int = Field(
        default=5, ge=1, description="Records processed concurrently per batch"
    )
    inter_batch_delay: float = Field(
        default=2.0, ge=0.0, description="Seconds to wait between batches"
    )
    inter_item_stagger: float = Field(
        default=0.5, ge=0.0, description="Seconds between item starts in a batch"
    )
    per_item_timeout: float = Field(
        default=30.0, gt=0.0, description="Seconds allowed for render plus send"
    )


DEFAULT_PROFILE = "default"

DISPATCH_PROFILES: dict[str, DispatchProfile] = {
    # Gmail, Outlook and other providers that throttle bursts.
    "aggressive": DispatchProfile(
        batch_size=3,
        inter_batch_delay=3.0,
        inter_item_stagger=1.0,
        per_item_timeout=45.0,
    ),
    # Dedicated SMTP relays.
    "dedicated": DispatchProfile(
        batch_size=10,
        inter_batch_delay=1.0,
        inter_item_stagger=0.2,
        per_item_timeout=30.0,
    ),
    DEFAULT_PROFILE: DispatchProfile(),
}


class DispatchSettings(BaseModel):
    """Profile selection plus per-field overrides for the dispatch pipeline."""

    profile: str = Field(default=DEFAULT_PROFILE, description="Named pacing profile")
    batch_size: int | None = Field(default=None, ge=1)
    inter_batch_delay: float | None = Field(default=None, ge=0.0)
    inter_item_stagger: float | None = Field(default=None, ge=0.0)
    per_item_timeout: float | None = Field(default=None, gt=0.0)

    def resolve(self, profile: str | None = None) -> DispatchProfile:
        """Return the named profile with any configured overrides applied."""
        name = (profile or self.profile or DEFAULT_PROFILE).strip().lower()
        base = DISPATCH_PROFILES.get(name)
        if base is None:
            LOGGER.warning(
                "Unknown dispatch profile %r; using %r", name, DEFAULT_PROFILE
            )
            base = DISPATCH_PROFILES[DEFAULT_PROFILE]
        overrides = {
            key: value
            for key, value in (
                ("batch_size", self.batch_size),
                ("inter_batch_delay", self.inter_batch_delay),
                ("inter_item_stagger", self.inter_item_stagger),
                ("per_item_timeout", self.per_item_timeout),
            )
            if value is not None
        }
        return base.model_copy(update=overrides) if overrides else base


class ParserSettings(BaseModel):
    """Settings for CSV record parsing."""

    numeric_markers: tuple[str, ...] = Field(
        default=DEFAULT_NUMERIC_MARKERS,
        description="Header substrings whose columns hold numeric amounts",
    )

    @field_validator("numeric_markers", mode="before")
    @classmethod
    def _split_markers(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(item.strip() for item in value.split(",") if item.strip())
        return value


class SmtpTransportSettings(BaseModel):
    """Settings controlling how SMTP connections are opened."""

    connect_timeout: float = Field(
        default=10.0, gt=0.0, description="Socket timeout for SMTP operations"
    )


class EmailServerConfig(BaseModel):
    """SMTP server credentials supplied once per dispatch run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    host: str = Field(min_length=1, description="SMTP hostname")
    port: int = Field(default=465, ge=1, le=65535, description="SMTP port")
    username: str | None = Field(default=None, alias="user")
    password: str | None = Field(default=None)
    from_address: str = Field(alias="from", min_length=1)
    use_ssl: bool = Field(
        default=True, description="Implicit TLS; false upgrades with STARTTLS"
    )


class PayslipSettings(BaseModel):
    """Content defaults for generated payslips and emails."""

    default_credit_date: str | None = Field(
        default=None, description="Credit date shown when a row has none"
    )
    company_name: str | None = Field(
        default=None, description="Optional heading printed on each payslip"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle JSON structured logging"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    parser: ParserSettings = Field(default_factory=ParserSettings)
    smtp: SmtpTransportSettings = Field(default_factory=SmtpTransportSettings)
    server: EmailServerConfig | None = Field(default=None)
    payslip: PayslipSettings = Field(default_factory=PayslipSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_PREFIX = "PAYSLIP_MAILER_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _collect_env_values(
    env_file: Path | str | None, *, include_environment: bool = True
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = (
        {key: value for key, value in os.environ.items() if key.startswith(ENV_PREFIX)}
        if include_environment
        else {}
    )

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        normalized_value: Any = value
        if isinstance(value, str) and value == "":
            normalized_value = None
        elif isinstance(value, str):
            lowercase_value = value.lower()
            if lowercase_value == "true":
                normalized_value = True
            elif lowercase_value == "false":
                normalized_value = False
        _merge_into_tree(collected, path, normalized_value)

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment=include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "DEFAULT_NUMERIC_MARKERS",
    "DEFAULT_PROFILE",
    "DISPATCH_PROFILES",
    "DispatchProfile",
    "DispatchSettings",
    "EmailServerConfig",
    "LoggingSettings",
    "ParserSettings",
    "PayslipSettings",
    "SmtpTransportSettings",
    "load_app_settings",
]
