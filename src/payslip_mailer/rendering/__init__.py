"""Payslip document rendering."""

from .pdf import PdfPayslipRenderer, format_amount

__all__ = ["PdfPayslipRenderer", "format_amount"]
