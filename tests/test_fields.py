"""Tests for record field resolution helpers."""

from __future__ import annotations

from payslip_mailer.ingestion import (
    find_field,
    random_suffix,
    resolve_address,
    resolve_employee_id,
    resolve_field,
)


def test_resolve_field_uses_first_non_empty_candidate() -> None:
    record = {"First Name": "", "first name": "ana"}

    assert resolve_field(record, "First Name", "first name") == "ana"
    assert resolve_field(record, "Nickname", default="-") == "-"


def test_resolve_address_checks_exact_then_lowercase_key() -> None:
    assert resolve_address({"Email": "a@x.com"}) == "a@x.com"
    assert resolve_address({"email": " b@x.com "}) == "b@x.com"
    assert resolve_address({"Email": ""}) is None
    assert resolve_address({"E-mail": "c@x.com"}) is None


def test_employee_id_fallback_chain() -> None:
    assert resolve_employee_id({"Emp ID": "77"}) == "77"
    assert resolve_employee_id({"employee id": "E9", "Emp ID": "77"}) == "E9"
    assert resolve_employee_id({"Name": "x"}, lambda: "abc123xyz") == "EMP-abc123xyz"


def test_random_suffix_is_lowercase_base36() -> None:
    suffix = random_suffix()

    assert len(suffix) == 9
    assert all(char.isdigit() or "a" <= char <= "z" for char in suffix)


def test_find_field_matches_case_insensitively_then_by_keywords() -> None:
    record = {
        "EMPLOYEE NUMBER ID": "E1",
        "Given First Name": "Ana",
        "Position Title": "Clerk",
        "Period Date From": "09/01/2025",
        "Basic Pay": 1000.0,
    }

    assert find_field(record, "basic pay") == 1000.0
    assert find_field(record, "employee id") == "E1"
    assert find_field(record, "first name") == "Ana"
    assert find_field(record, "job title") == "Clerk"
    assert find_field(record, "date from") == "09/01/2025"
    assert find_field(record, "net pay") == ""
