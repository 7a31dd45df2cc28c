"""Fixed-layout payslip PDF rendering using fpdf2."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from fpdf import FPDF
from fpdf.errors import FPDFException

from ..core.cancellation import CancellationToken
from ..core.config import PayslipSettings
from ..core.interfaces import DeliveryCancelled, RenderError
from ..core.models import FieldValue, Record
from ..ingestion.fields import find_field
from ..ingestion.parser import parse_amount

LOGGER = logging.getLogger(__name__)

TEAL = (13, 148, 136)
DARK_GRAY = (51, 51, 51)
LIGHT_GRAY = (128, 128, 128)
RULE_GRAY = (200, 200, 200)

PAGE_CENTER = 105.0
LEFT_MARGIN = 20.0
RIGHT_EDGE = 190.0
AMOUNT_HEADER_X = 170.0
PERIOD_LABEL_X = 130.0
PERIOD_VALUE_X = 165.0

# (label printed on the payslip, column name looked up in the record)
EARNING_LINES: tuple[tuple[str, str], ...] = (
    ("Basic Pay", "basic pay"),
    ("Regular OT", "regular ot"),
    ("Special Holiday Premium Pay", "special holiday premium pay"),
    ("Regular Holiday Premium Pay", "regular holiday premium pay"),
    ("Night Differential", "night differential"),
    ("Transportation Allowance", "transportation allowance"),
    ("Other Pay (Taxable)", "other pay (taxable)"),
    ("Spot Bonus", "spot bonus"),
    ("Rest Day OT", "rest day ot"),
)

DEDUCTION_LINES: tuple[tuple[str, str], ...] = (
    ("Absences", "absences"),
    ("Undertime/Tardiness", "undertime/tardiness"),
    ("SSS (EE)", "sss (ee)"),
    ("HDMF (EE)", "hdmf (ee)"),
    ("PHIC (EE)", "phic (ee)"),
    ("SSS Loan", "sss loan"),
    ("HDMF Loan", "hdmf loan"),
    ("Salary Loan Repayment", "salary loan repayment"),
)


def format_amount(value: FieldValue | None) -> str:
    """Format an amount with two decimals; non-numeric values give ``0.00``."""
    if value is None:
        return "0.00"
    number = value if isinstance(value, float) else parse_amount(str(value).strip())
    return f"{number:.2f}"


def _amount(value: FieldValue) -> float:
    return value if isinstance(value, float) else parse_amount(str(value).strip())


def _latin1(value: FieldValue | None) -> str:
    # Core PDF fonts only cover Latin-1.
    text = "" if value is None else str(value)
    return text.encode("latin-1", "replace").decode("latin-1")


class PdfPayslipRenderer:
    """Render a one-page A4 payslip for a payroll record."""

    def __init__(self, settings: PayslipSettings | None = None) -> None:
        self._settings = settings or PayslipSettings()

    async def render(
        self, record: Record, cancel_token: CancellationToken | None = None
    ) -> bytes:
        """Render ``record`` in a worker thread and return PDF bytes."""
        if cancel_token is not None and cancel_token.cancelled:
            raise DeliveryCancelled(cancel_token.reason or "cancelled")
        return await asyncio.to_thread(self.render_bytes, record)

    def render_bytes(self, record: Record) -> bytes:
        """Render ``record`` synchronously.

        Raises:
            RenderError: If fpdf2 rejects the document.
        """
        try:
            document = FPDF(orientation="P", unit="mm", format="A4")
            document.set_auto_page_break(auto=False)
            document.add_page()
            self._draw(document, record)
            return bytes(document.output())
        except RenderError:
            raise
        except (FPDFException, RuntimeError, ValueError, TypeError) as exc:
            LOGGER.error("Failed to render payslip: %s", exc)
            raise RenderError(f"Failed to render payslip: {exc}") from exc

    def _draw(self, doc: FPDF, record: Record) -> None:
        doc.set_text_color(*DARK_GRAY)
        if self._settings.company_name:
            doc.set_font("helvetica", style="B", size=12)
            _text_center(doc, 30, _latin1(self._settings.company_name))

        doc.set_font("helvetica", style="B", size=20)
        _text_center(doc, 52, "Payslip")

        doc.set_font("helvetica", style="B", size=9)
        doc.text(LEFT_MARGIN, 65, _latin1(find_field(record, "employee id")))
        doc.set_font("helvetica", size=9)
        full_name = " ".join(
            _latin1(find_field(record, name))
            for name in ("first name", "middle name", "last name")
        )
        doc.text(LEFT_MARGIN, 70, full_name)
        doc.text(LEFT_MARGIN, 75, _latin1(find_field(record, "job title")))

        period = (
            f"{_latin1(find_field(record, 'date from'))} to "
            f"{_latin1(find_field(record, 'date to'))}"
        )
        self._labelled(doc, 65, "Pay Period:", period)
        self._labelled(doc, 70, "Pay Day:", _latin1(find_field(record, "date payment")))

        y_pos = self._section(doc, record, 90, "Earnings", EARNING_LINES)
        y_pos = self._total(doc, y_pos, "Total Earnings:", find_field(record, "total earnings"))

        y_pos = self._section(doc, record, y_pos + 12, "Deductions", DEDUCTION_LINES)
        y_pos = self._total(
            doc, y_pos, "Total Deductions:", find_field(record, "total deductions")
        )

        y_pos += 15
        doc.set_font("helvetica", style="B", size=14)
        doc.set_text_color(*DARK_GRAY)
        _text_center(doc, y_pos, "Take Home Pay:")
        y_pos += 8
        doc.set_font("helvetica", style="B", size=20)
        doc.set_text_color(*TEAL)
        _text_center(doc, y_pos, format_amount(find_field(record, "net pay")))

        y_pos += 15
        doc.set_font("helvetica", style="B", size=10)
        doc.set_text_color(*DARK_GRAY)
        doc.text(LEFT_MARGIN, y_pos, "Notes:")
        y_pos += 8
        doc.set_font("helvetica", size=9)
        doc.set_text_color(*LIGHT_GRAY)
        _text_center(doc, y_pos, "This is a system generated payslip.")

    @staticmethod
    def _labelled(doc: FPDF, y_pos: float, label: str, value: str) -> None:
        doc.set_font("helvetica", style="B", size=9)
        doc.text(PERIOD_LABEL_X, y_pos, label)
        doc.set_font("helvetica", size=9)
        doc.text(PERIOD_VALUE_X, y_pos, value)

    @staticmethod
    def _section(
        doc: FPDF,
        record: Record,
        y_pos: float,
        title: str,
        lines: Sequence[tuple[str, str]],
    ) -> float:
        doc.set_font("helvetica", style="B", size=10)
        doc.text(LEFT_MARGIN, y_pos, title)
        doc.text(AMOUNT_HEADER_X, y_pos, "Amount")
        doc.set_draw_color(*RULE_GRAY)
        doc.line(LEFT_MARGIN, y_pos + 2, RIGHT_EDGE, y_pos + 2)

        y_pos += 8
        doc.set_font("helvetica", size=9)
        for label, column in lines:
            value = find_field(record, column)
            if _amount(value) == 0:
                continue
            doc.text(LEFT_MARGIN, y_pos, label)
            _text_right(doc, y_pos, format_amount(value))
            y_pos += 5
        return y_pos

    @staticmethod
    def _total(doc: FPDF, y_pos: float, label: str, value: FieldValue) -> float:
        y_pos += 3
        doc.set_font("helvetica", style="B", size=9)
        doc.line(LEFT_MARGIN, y_pos - 2, RIGHT_EDGE, y_pos - 2)
        doc.text(LEFT_MARGIN, y_pos, label)
        _text_right(doc, y_pos, format_amount(value))
        return y_pos


def _text_center(doc: FPDF, y_pos: float, text: str) -> None:
    doc.text(PAGE_CENTER - doc.get_string_width(text) / 2, y_pos, text)


def _text_right(doc: FPDF, y_pos: float, text: str) -> None:
    doc.text(RIGHT_EDGE - doc.get_string_width(text), y_pos, text)


__all__ = ["DEDUCTION_LINES", "EARNING_LINES", "PdfPayslipRenderer", "format_amount"]
