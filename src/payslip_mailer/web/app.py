"""FastAPI application streaming bulk payslip delivery progress."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from payslip_mailer.core import AppSettings, EmailServerConfig, load_app_settings
from payslip_mailer.core.config import DISPATCH_PROFILES
from payslip_mailer.core.interfaces import (
    Clock,
    EmptyInputError,
    IdProvider,
    MailSender,
    PayslipRenderer,
)
from payslip_mailer.dispatch import DispatchPipeline, PayslipEmailComposer
from payslip_mailer.dispatch.reporter import single_error, stream_events
from payslip_mailer.ingestion import CsvRecordParser, random_suffix
from payslip_mailer.rendering import PdfPayslipRenderer
from payslip_mailer.transport import SmtpMailSender

LOGGER = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "Missing file or email config"
FILE_FIELD = "file"
CONFIG_FIELD = "emailConfig"
PROFILE_FIELD = "profile"

_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}

_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_ENV_FILE = _PROJECT_ROOT / ".env"
_ENV_FILE_OVERRIDE_VAR = "PAYSLIP_MAILER_ENV_FILE"


def _resolve_env_file() -> Path:
    override = os.environ.get(_ENV_FILE_OVERRIDE_VAR)
    if override:
        return Path(override).expanduser()
    return _DEFAULT_ENV_FILE


def _coerce_form_value(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _validation_summary(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "invalid value"


def _event_stream(frames: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(
        frames, media_type="text/event-stream", headers=_STREAM_HEADERS
    )


def create_app(
    settings: AppSettings | None = None,
    *,
    renderer: PayslipRenderer | None = None,
    sender: MailSender | None = None,
    clock: Clock | None = None,
    id_provider: IdProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = settings or load_app_settings(env_file=_resolve_env_file())
    app = FastAPI(title="Payslip Mailer")

    csv_parser = CsvRecordParser(app_settings.parser.numeric_markers)
    payslip_renderer = renderer or PdfPayslipRenderer(app_settings.payslip)
    mail_sender = sender or SmtpMailSender(app_settings.smtp)
    composer = PayslipEmailComposer(
        app_settings.payslip, id_provider=id_provider or random_suffix
    )

    @app.get("/api/profiles")
    async def list_profiles() -> dict[str, Any]:
        return {
            "default": app_settings.dispatch.profile,
            "profiles": {
                name: profile.model_dump() for name, profile in DISPATCH_PROFILES.items()
            },
        }

    @app.post("/api/send-payslips")
    async def send_payslips(request: Request) -> StreamingResponse:
        form = await request.form()
        upload = form.get(FILE_FIELD)
        raw_config = _coerce_form_value(form.get(CONFIG_FIELD))
        profile_name = _coerce_form_value(form.get(PROFILE_FIELD)) or None

        if not isinstance(upload, UploadFile) or not raw_config:
            LOGGER.warning("Rejected payslip request: missing file or email config")
            return _event_stream(single_error(MISSING_INPUT_MESSAGE))

        try:
            server = EmailServerConfig.model_validate_json(raw_config)
        except ValidationError as exc:
            LOGGER.warning("Rejected payslip request: invalid email config")
            return _event_stream(
                single_error(f"Invalid email config: {_validation_summary(exc)}")
            )

        payload = await upload.read()
        try:
            records = csv_parser.parse_bytes(payload)
        except EmptyInputError as exc:
            LOGGER.warning("Rejected payslip request: %s", exc)
            return _event_stream(single_error(str(exc)))

        profile = app_settings.dispatch.resolve(profile_name)
        LOGGER.info(
            "Starting payslip run for %d record(s) from %s via %s:%d",
            len(records),
            upload.filename or "upload",
            server.host,
            server.port,
        )
        pipeline = DispatchPipeline(
            payslip_renderer,
            mail_sender,
            profile,
            composer=composer,
            clock=clock,
        )
        return _event_stream(stream_events(pipeline.run(records, server)))

    return app


__all__ = ["MISSING_INPUT_MESSAGE", "create_app"]
