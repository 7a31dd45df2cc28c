"""Build payslip emails from payroll records."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.config import PayslipSettings
from ..core.datetime_utils import display_date, filename_safe_date
from ..core.interfaces import IdProvider
from ..core.models import EmailAttachment, OutgoingEmail, Record
from ..ingestion.fields import (
    CREDIT_DATE_KEYS,
    DATE_FROM_KEYS,
    DATE_TO_KEYS,
    FIRST_NAME_KEYS,
    LAST_NAME_KEYS,
    random_suffix,
    resolve_employee_id,
    resolve_field,
)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
EMAIL_TEMPLATE = "payslip_email.html"


class PayslipEmailComposer:
    """Compose the subject, HTML body and attachment for one payslip."""

    def __init__(
        self,
        settings: PayslipSettings | None = None,
        *,
        id_provider: IdProvider = random_suffix,
    ) -> None:
        self._settings = settings or PayslipSettings()
        self._id_provider = id_provider
        self._environment = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def attachment_filename(self, record: Record) -> str:
        employee_id = resolve_employee_id(record, self._id_provider)
        date_from = filename_safe_date(resolve_field(record, *DATE_FROM_KEYS))
        return f"Payslip_{employee_id}_{date_from}.pdf"

    def compose(self, record: Record, address: str, pdf: bytes) -> OutgoingEmail:
        """Return the email delivering ``pdf`` to ``address``."""
        first_name = resolve_field(record, *FIRST_NAME_KEYS)
        last_name = resolve_field(record, *LAST_NAME_KEYS)
        date_from = display_date(resolve_field(record, *DATE_FROM_KEYS))
        date_to = display_date(resolve_field(record, *DATE_TO_KEYS))
        credit_date = display_date(
            resolve_field(
                record,
                *CREDIT_DATE_KEYS,
                default=self._settings.default_credit_date or "",
            )
        )

        subject = (
            f"Payslip for {first_name} {last_name} "
            f"for the duration from {date_from} to {date_to}"
        )
        html = self._environment.get_template(EMAIL_TEMPLATE).render(
            first_name=first_name,
            last_name=last_name,
            date_from=date_from,
            date_to=date_to,
            credit_date=credit_date,
        )
        attachment = EmailAttachment(
            filename=self.attachment_filename(record), content=pdf
        )
        return OutgoingEmail(
            to=address, subject=subject, html=html, attachments=(attachment,)
        )


__all__ = ["EMAIL_TEMPLATE", "PayslipEmailComposer"]
