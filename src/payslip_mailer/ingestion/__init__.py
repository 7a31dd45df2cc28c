"""CSV ingestion and record field lookups."""

from .fields import (
    find_field,
    random_suffix,
    resolve_address,
    resolve_employee_id,
    resolve_field,
)
from .parser import EMPTY_INPUT_MESSAGE, CsvRecordParser, parse_amount

__all__ = [
    "CsvRecordParser",
    "EMPTY_INPUT_MESSAGE",
    "find_field",
    "parse_amount",
    "random_suffix",
    "resolve_address",
    "resolve_employee_id",
    "resolve_field",
]
