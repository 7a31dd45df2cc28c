"""Tests for payslip email composition."""

from __future__ import annotations

from payslip_mailer.core.config import PayslipSettings
from payslip_mailer.core.datetime_utils import display_date
from payslip_mailer.dispatch import PayslipEmailComposer


def test_subject_body_and_attachment() -> None:
    composer = PayslipEmailComposer(id_provider=lambda: "unused")
    record = {
        "Employee ID": "E-42",
        "First Name": "Ana",
        "Last Name": "Cruz",
        "Date From": "2025-09-01",
        "Date To": "2025-09-15",
        "Credit Date": "09/20/2025",
    }

    message = composer.compose(record, "ana@example.com", b"%PDF")

    assert message.to == "ana@example.com"
    assert message.subject == (
        "Payslip for Ana Cruz for the duration from September 1, 2025 "
        "to September 15, 2025"
    )
    assert "Payslip for Ana Cruz" in message.html
    assert "credit to your respective account on September 20, 2025" in message.html
    assert "Please do not reply to this email." in message.html
    assert message.attachments[0].filename == "Payslip_E-42_2025-09-01.pdf"
    assert message.attachments[0].content_type == "application/pdf"


def test_generated_identifier_and_default_credit_date() -> None:
    composer = PayslipEmailComposer(
        PayslipSettings(default_credit_date="October 5, 2025"),
        id_provider=lambda: "k3j9x0a1b",
    )
    record = {"first name": "Ben", "last name": "Diaz", "date from": "9/1/2025"}

    message = composer.compose(record, "ben@example.com", b"%PDF")

    assert message.attachments[0].filename == "Payslip_EMP-k3j9x0a1b_9-1-2025.pdf"
    assert "on October 5, 2025" in message.html


def test_credit_sentence_omitted_without_date() -> None:
    message = PayslipEmailComposer().compose({"Employee ID": "E1"}, "x@example.com", b"")

    assert "approved for credit" not in message.html


def test_html_values_are_escaped() -> None:
    record = {"Employee ID": "E1", "First Name": "<b>Ana</b>", "Last Name": "Cruz"}
    message = PayslipEmailComposer().compose(record, "x@example.com", b"")

    assert "&lt;b&gt;Ana&lt;/b&gt;" in message.html


def test_display_date_keeps_unparseable_values() -> None:
    assert display_date("Sept 1st") == "Sept 1st"
    assert display_date("") == ""
    assert display_date("01/02/2025") == "January 2, 2025"
