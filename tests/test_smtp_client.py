"""Tests for the SMTP transport adapter."""

# pylint: disable=protected-access

from __future__ import annotations

import smtplib
from unittest.mock import MagicMock

import pytest

from payslip_mailer.core.cancellation import CancellationToken
from payslip_mailer.core.config import EmailServerConfig, SmtpTransportSettings
from payslip_mailer.core.interfaces import DeliveryCancelled
from payslip_mailer.core.models import EmailAttachment, OutgoingEmail
from payslip_mailer.transport import SmtpClient, SmtpError, SmtpMailSender

SERVER = EmailServerConfig.model_validate(
    {
        "host": "smtp.test",
        "port": 465,
        "user": "payroll",
        "password": "secret",
        "from": "Payroll <payroll@test>",
    }
)

MESSAGE = OutgoingEmail(
    to="ana@example.com",
    subject="Payslip for Ana Cruz",
    html="<p>Hi</p>",
    attachments=(EmailAttachment(filename="Payslip_E1_9-1-2025.pdf", content=b"%PDF-1.4"),),
)


def test_send_builds_multipart_message_with_pdf() -> None:
    client = SmtpClient(SERVER)
    mock_connection = MagicMock()
    mock_connection.send_message.return_value = {}
    client._connection = mock_connection  # type: ignore[attr-defined]

    client.send(MESSAGE)

    sent = mock_connection.send_message.call_args.args[0]
    assert sent["From"] == "Payroll <payroll@test>"
    assert sent["To"] == "ana@example.com"
    assert sent["Subject"] == "Payslip for Ana Cruz"
    parts = sent.get_payload()
    assert parts[0].get_content_type() == "text/html"
    assert parts[1].get_content_type() == "application/pdf"
    assert parts[1].get_filename() == "Payslip_E1_9-1-2025.pdf"
    assert parts[1].get_payload(decode=True) == b"%PDF-1.4"


def test_refused_recipients_raise_smtp_error() -> None:
    client = SmtpClient(SERVER)
    mock_connection = MagicMock()
    mock_connection.send_message.return_value = {"ana@example.com": (550, b"nope")}
    client._connection = mock_connection  # type: ignore[attr-defined]

    with pytest.raises(SmtpError, match="refused"):
        client.send(MESSAGE)


def test_send_requires_connection() -> None:
    with pytest.raises(SmtpError, match="Not connected"):
        SmtpClient(SERVER).send(MESSAGE)


def test_connect_uses_ssl_and_logs_in(monkeypatch: pytest.MonkeyPatch) -> None:
    factory = MagicMock()
    monkeypatch.setattr(smtplib, "SMTP_SSL", factory)

    with SmtpClient(SERVER, SmtpTransportSettings(connect_timeout=5.0)):
        pass

    factory.assert_called_once_with("smtp.test", 465, timeout=5.0)
    factory.return_value.login.assert_called_once_with("payroll", "secret")
    factory.return_value.quit.assert_called_once()


def test_authentication_failure_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    factory = MagicMock()
    factory.return_value.login.side_effect = smtplib.SMTPAuthenticationError(
        535, b"bad credentials"
    )
    monkeypatch.setattr(smtplib, "SMTP_SSL", factory)

    with pytest.raises(SmtpError, match="authentication failed"):
        SmtpClient(SERVER).connect()


def test_starttls_used_when_ssl_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    factory = MagicMock()
    monkeypatch.setattr(smtplib, "SMTP", factory)
    server = SERVER.model_copy(update={"use_ssl": False, "port": 587})

    SmtpClient(server).connect()

    factory.assert_called_once_with("smtp.test", 587, timeout=10.0)
    factory.return_value.starttls.assert_called_once()


@pytest.mark.asyncio
async def test_mail_sender_skips_cancelled_work(monkeypatch: pytest.MonkeyPatch) -> None:
    factory = MagicMock()
    monkeypatch.setattr(smtplib, "SMTP_SSL", factory)
    token = CancellationToken()
    token.cancel("timeout")

    with pytest.raises(DeliveryCancelled, match="timeout"):
        await SmtpMailSender().send(MESSAGE, SERVER, cancel_token=token)

    factory.assert_not_called()


@pytest.mark.asyncio
async def test_mail_sender_delivers_over_fresh_connection(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    factory = MagicMock()
    factory.return_value.send_message.return_value = {}
    monkeypatch.setattr(smtplib, "SMTP_SSL", factory)

    await SmtpMailSender().send(MESSAGE, SERVER)

    factory.return_value.send_message.assert_called_once()
    factory.return_value.quit.assert_called_once()
