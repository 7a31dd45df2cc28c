"""Utilities for parsing payroll CSV exports into typed records."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from types import MappingProxyType

from ..core.config import DEFAULT_NUMERIC_MARKERS
from ..core.interfaces import EmptyInputError
from ..core.models import FieldValue, Record

LOGGER = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "CSV file is empty or invalid"

# Leading decimal number, as accepted by lenient float parsing.
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class CsvRecordParser:
    """Convert raw CSV text into records with numeric and string fields.

    The format is a deliberately small subset of CSV: cells are split on
    every comma, and quoted fields may not contain commas or newlines.
    """

    def __init__(self, numeric_markers: Iterable[str] = DEFAULT_NUMERIC_MARKERS) -> None:
        """Prepare the parser with the header substrings that denote amounts."""
        self._numeric_markers = tuple(numeric_markers)

    @property
    def numeric_markers(self) -> tuple[str, ...]:
        return self._numeric_markers

    def parse(self, text: str) -> list[Record]:
        """Parse ``text`` into one record per non-blank data line.

        Raises:
            EmptyInputError: If there is no header row or no data row.
        """
        lines = [line for line in text.split("\n") if line.strip()]
        if len(lines) < 2:
            raise EmptyInputError(EMPTY_INPUT_MESSAGE)

        headers = _split_row(lines[0])
        numeric_columns = tuple(self.is_numeric_header(header) for header in headers)

        records: list[Record] = []
        for line in lines[1:]:
            cells = _split_row(line)
            row: dict[str, FieldValue] = {}
            for index, header in enumerate(headers):
                cell = cells[index] if index < len(cells) else ""
                row[header] = (
                    parse_amount(cell) if numeric_columns[index] else cell
                )
            records.append(MappingProxyType(row))

        LOGGER.info(
            "Parsed %d record(s) with %d column(s)", len(records), len(headers)
        )
        return records

    def parse_bytes(self, payload: bytes, encoding: str = "utf-8") -> list[Record]:
        """Decode ``payload`` and parse it, ignoring a leading byte-order mark."""
        text = payload.decode(encoding, errors="replace")
        return self.parse(text.removeprefix("\ufeff"))

    def is_numeric_header(self, header: str) -> bool:
        """Return ``True`` when ``header`` names a monetary column."""
        return any(marker in header for marker in self._numeric_markers)


def parse_amount(cell: str) -> float:
    """Parse the leading number in ``cell``; blank or invalid values give 0."""
    if not cell:
        return 0.0
    match = _NUMBER_PREFIX.match(cell)
    if match is None:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def _split_row(line: str) -> Sequence[str]:
    return [_clean_cell(cell) for cell in line.split(",")]


def _clean_cell(cell: str) -> str:
    value = cell.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


__all__ = ["CsvRecordParser", "EMPTY_INPUT_MESSAGE", "parse_amount"]
