"""Ordered-fallback lookups over parsed payroll records."""

from __future__ import annotations

import secrets
import string
from collections.abc import Sequence

from ..core.interfaces import IdProvider
from ..core.models import FieldValue, Record

ADDRESS_KEYS: tuple[str, ...] = ("Email", "email")
EMPLOYEE_ID_KEYS: tuple[str, ...] = ("Employee ID", "employee id", "Emp ID", "emp id")
FIRST_NAME_KEYS: tuple[str, ...] = ("First Name", "first name")
LAST_NAME_KEYS: tuple[str, ...] = ("Last Name", "last name")
DATE_FROM_KEYS: tuple[str, ...] = ("Date From", "date from")
DATE_TO_KEYS: tuple[str, ...] = ("Date To", "date to")
CREDIT_DATE_KEYS: tuple[str, ...] = ("Credit Date", "credit date")

GENERATED_ID_PREFIX = "EMP-"

_BASE36_ALPHABET = string.digits + string.ascii_lowercase

# (trigger in requested name, keywords that must all appear in the key)
_KEYWORD_FALLBACKS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("employee", ("employee", "id")),
    ("first", ("first", "name")),
    ("last", ("last", "name")),
    ("middle", ("middle", "name")),
    ("date from", ("date", "from")),
    ("date to", ("date", "to")),
    ("date payment", ("date", "payment")),
)


def random_suffix(length: int = 9) -> str:
    """Return ``length`` random lowercase base-36 characters."""
    return "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(length))


def _as_text(value: FieldValue | None) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:g}"
    return value


def resolve_field(record: Record, *candidates: str, default: str = "") -> str:
    """Return the first non-empty value among ``candidates`` as text."""
    for key in candidates:
        value = record.get(key)
        if value is None:
            continue
        # Numeric zero counts as absent, mirroring blank cells.
        if isinstance(value, float) and value == 0:
            continue
        text = _as_text(value)
        if text:
            return text
    return default


def resolve_address(record: Record) -> str | None:
    """Return the recipient address for ``record`` if one is present."""
    address = resolve_field(record, *ADDRESS_KEYS).strip()
    return address or None


def resolve_employee_id(record: Record, id_provider: IdProvider = random_suffix) -> str:
    """Return the employee identifier, generating one when none is present."""
    employee_id = resolve_field(record, *EMPLOYEE_ID_KEYS)
    if employee_id:
        return employee_id
    return f"{GENERATED_ID_PREFIX}{id_provider()}"


def find_field(record: Record, name: str) -> FieldValue:
    """Look up ``name`` case-insensitively, then by keyword heuristics.

    Returns an empty string when no column matches.
    """
    wanted = name.lower()
    for key, value in record.items():
        if key.lower() == wanted:
            return value

    for trigger, keywords in _KEYWORD_FALLBACKS:
        if trigger in wanted:
            match = _first_key_with_all(record, keywords)
            if match is not None:
                return record[match]

    if "job" in wanted or "title" in wanted:
        for key, value in record.items():
            lowered = key.lower()
            if "job" in lowered or "title" in lowered:
                return value

    return ""


def _first_key_with_all(record: Record, keywords: Sequence[str]) -> str | None:
    for key in record:
        lowered = key.lower()
        if all(keyword in lowered for keyword in keywords):
            return key
    return None


__all__ = [
    "ADDRESS_KEYS",
    "CREDIT_DATE_KEYS",
    "DATE_FROM_KEYS",
    "DATE_TO_KEYS",
    "EMPLOYEE_ID_KEYS",
    "FIRST_NAME_KEYS",
    "GENERATED_ID_PREFIX",
    "LAST_NAME_KEYS",
    "find_field",
    "random_suffix",
    "resolve_address",
    "resolve_employee_id",
    "resolve_field",
]
