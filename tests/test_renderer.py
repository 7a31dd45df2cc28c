"""Tests for the fpdf2 payslip renderer."""

from __future__ import annotations

import pytest

from payslip_mailer.core.cancellation import CancellationToken
from payslip_mailer.core.config import PayslipSettings
from payslip_mailer.core.interfaces import DeliveryCancelled
from payslip_mailer.ingestion import CsvRecordParser
from payslip_mailer.rendering import PdfPayslipRenderer, format_amount

CSV_TEXT = (
    "Employee ID,First Name,Middle Name,Last Name,Job Title,Date From,Date To,"
    "Date Payment,Basic Pay,Night Differential,SSS (EE),Total Earnings,"
    "Total Deductions,Net Pay\n"
    "E1,José,M,Cruz,Clerk,09/01/2025,09/15/2025,09/20/2025,15000,320,-581.3,"
    "15320,-581.3,14738.7\n"
)


def test_render_bytes_produces_pdf() -> None:
    record = CsvRecordParser().parse(CSV_TEXT)[0]
    renderer = PdfPayslipRenderer(PayslipSettings(company_name="Acme Payroll"))

    pdf = renderer.render_bytes(record)

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500


def test_render_handles_sparse_records() -> None:
    record = CsvRecordParser().parse("Email\nsomeone@example.com\n")[0]

    assert PdfPayslipRenderer().render_bytes(record).startswith(b"%PDF")


@pytest.mark.asyncio
async def test_async_render_runs_and_honours_cancellation() -> None:
    record = CsvRecordParser().parse(CSV_TEXT)[0]
    renderer = PdfPayslipRenderer()

    assert (await renderer.render(record)).startswith(b"%PDF")

    token = CancellationToken()
    token.cancel("timeout")
    with pytest.raises(DeliveryCancelled):
        await renderer.render(record, token)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1234.5, "1234.50"), ("-581.3", "-581.30"), ("", "0.00"), (None, "0.00")],
)
def test_format_amount(value, expected: str) -> None:
    assert format_amount(value) == expected
