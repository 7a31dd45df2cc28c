"""Date helpers shared by the email composer and the PDF renderer."""

from __future__ import annotations

from datetime import date, datetime

__all__ = [
    "parse_display_date",
    "display_date",
    "filename_safe_date",
]

_ACCEPTED_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d %Y",
)


def parse_display_date(value: str | None) -> date | None:
    """Parse the date formats payroll exports commonly use."""
    if not value:
        return None
    text = value.strip()
    for pattern in _ACCEPTED_FORMATS:
        try:
            return datetime.strptime(text, pattern).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def display_date(value: str | None) -> str:
    """Return ``value`` as ``Month D, YYYY`` or unchanged when unparseable."""
    if not value:
        return ""
    parsed = parse_display_date(value)
    if parsed is None:
        return value
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def filename_safe_date(value: str) -> str:
    """Replace path separators so a date can be embedded in a filename."""
    return value.replace("/", "-")
