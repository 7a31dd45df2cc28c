"""Payslip Mailer: render payroll CSV rows into PDF payslips and email them."""

__version__ = "0.1.0"
