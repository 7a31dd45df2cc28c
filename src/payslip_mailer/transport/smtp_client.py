"""SMTP client for delivering payslip emails with attachments."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from payslip_mailer.core.cancellation import CancellationToken
from payslip_mailer.core.config import EmailServerConfig, SmtpTransportSettings
from payslip_mailer.core.interfaces import DeliveryCancelled, PayslipMailerError
from payslip_mailer.core.models import OutgoingEmail

LOGGER = logging.getLogger(__name__)


class SmtpError(PayslipMailerError):
    """Base exception for SMTP operations.

    Raised when SMTP connection, authentication, or sending fails.
    """


class SmtpClient:
    """SMTP client for sending emails.

    Provides context manager interface for automatic connection management.
    Supports both implicit TLS (SSL) and STARTTLS connections.

    Example:
        >>> server = EmailServerConfig(host="smtp.gmail.com", ...)
        >>> with SmtpClient(server) as client:
        ...     client.send(OutgoingEmail(to="user@example.com", ...))
    """

    def __init__(
        self,
        server: EmailServerConfig,
        settings: SmtpTransportSettings | None = None,
    ) -> None:
        """Initialize SMTP client with server credentials.

        Args:
            server: SMTP host, credentials and sender address
            settings: Connection tuning such as socket timeout
        """
        self._server = server
        self._settings = settings or SmtpTransportSettings()
        self._connection: smtplib.SMTP | None = None

    def __enter__(self) -> SmtpClient:
        """Enter context manager, establishing connection."""
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        """Exit context manager, closing connection."""
        self.disconnect()

    def connect(self) -> None:
        """Establish SMTP connection and authenticate.

        Raises:
            SmtpError: If connection or authentication fails
        """
        server = self._server
        LOGGER.info("Attempting SMTP connection to %s:%d", server.host, server.port)

        try:
            if server.use_ssl:
                LOGGER.debug("Using SSL for SMTP connection")
                self._connection = smtplib.SMTP_SSL(
                    server.host,
                    server.port,
                    timeout=self._settings.connect_timeout,
                )
            else:
                LOGGER.debug("Using STARTTLS for SMTP connection")
                self._connection = smtplib.SMTP(
                    server.host,
                    server.port,
                    timeout=self._settings.connect_timeout,
                )
                self._connection.starttls()

            if server.username and server.password:
                LOGGER.debug("Authenticating as %s", server.username)
                self._connection.login(server.username, server.password)

            LOGGER.info("Connected to SMTP server: %s", server.host)

        except smtplib.SMTPAuthenticationError as exc:
            LOGGER.error("SMTP authentication failed: %s", exc)
            raise SmtpError(f"SMTP authentication failed: {exc}") from exc
        except smtplib.SMTPConnectError as exc:
            LOGGER.error("SMTP connection failed: %s", exc)
            raise SmtpError(f"Failed to connect to SMTP server: {exc}") from exc
        except smtplib.SMTPException as exc:
            LOGGER.error("SMTP error: %s", exc)
            raise SmtpError(f"SMTP error: {exc}") from exc
        except OSError as exc:
            LOGGER.error("Network error connecting to SMTP server: %s", exc)
            raise SmtpError(f"Network error: {exc}") from exc

    def disconnect(self) -> None:
        """Close SMTP connection gracefully."""
        if self._connection:
            try:
                self._connection.quit()
                LOGGER.debug("SMTP connection closed")
            except (smtplib.SMTPException, OSError) as exc:
                LOGGER.warning("Error closing SMTP connection: %s", exc)
            finally:
                self._connection = None

    def send(self, message: OutgoingEmail) -> None:
        """Send an email message.

        Args:
            message: The composed email to send

        Raises:
            SmtpError: If sending fails or not connected
        """
        if not self._connection:
            raise SmtpError("Not connected to SMTP server")

        LOGGER.debug("Preparing to send email to %s: %s", message.to, message.subject)

        try:
            mime_message = self._build_mime_message(message)
            refused = self._connection.send_message(mime_message)

            if refused:
                LOGGER.warning("Some recipients were refused: %s", refused)
                raise SmtpError(f"Some recipients were refused: {refused}")

            LOGGER.debug("Email accepted by server for %s", message.to)

        except smtplib.SMTPRecipientsRefused as exc:
            LOGGER.error("All recipients refused: %s", exc)
            raise SmtpError(f"All recipients refused: {exc}") from exc
        except smtplib.SMTPSenderRefused as exc:
            LOGGER.error("Sender refused: %s", exc)
            raise SmtpError(f"Sender refused: {exc}") from exc
        except smtplib.SMTPDataError as exc:
            LOGGER.error("SMTP data error: %s", exc)
            raise SmtpError(f"SMTP data error: {exc}") from exc
        except smtplib.SMTPException as exc:
            LOGGER.error("Failed to send email: %s", exc)
            raise SmtpError(f"Failed to send email: {exc}") from exc
        except OSError as exc:
            LOGGER.error("Network error while sending email: %s", exc)
            raise SmtpError(f"Network error: {exc}") from exc

    def _build_mime_message(self, message: OutgoingEmail) -> MIMEMultipart:
        """Build a ``multipart/mixed`` message with HTML body and attachments."""
        mime_msg = MIMEMultipart("mixed")
        mime_msg["From"] = self._server.from_address
        mime_msg["To"] = message.to
        mime_msg["Subject"] = message.subject

        mime_msg.attach(MIMEText(message.html, "html", "utf-8"))

        for attachment in message.attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            if maintype != "application" or not subtype:
                subtype = "octet-stream"
            part = MIMEApplication(attachment.content, _subtype=subtype)
            part.add_header(
                "Content-Disposition", "attachment", filename=attachment.filename
            )
            mime_msg.attach(part)
            LOGGER.debug(
                "Attached %s (%d bytes)", attachment.filename, len(attachment.content)
            )

        return mime_msg


class SmtpMailSender:
    """Async mail sender that opens one SMTP connection per message.

    Each call runs in a worker thread, so concurrent sends never share a
    connection. The cancellation token is honoured before connecting and
    before transmitting; once ``send_message`` has started the delivery runs
    to completion even if the caller has given up on it.
    """

    def __init__(self, settings: SmtpTransportSettings | None = None) -> None:
        self._settings = settings or SmtpTransportSettings()

    async def send(
        self,
        message: OutgoingEmail,
        server: EmailServerConfig,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        await asyncio.to_thread(self._deliver, message, server, cancel_token)

    def _deliver(
        self,
        message: OutgoingEmail,
        server: EmailServerConfig,
        cancel_token: CancellationToken | None,
    ) -> None:
        _raise_if_cancelled(cancel_token, message.to)
        with SmtpClient(server, self._settings) as client:
            _raise_if_cancelled(cancel_token, message.to)
            client.send(message)


def _raise_if_cancelled(token: CancellationToken | None, recipient: str) -> None:
    if token is not None and token.cancelled:
        LOGGER.info("Skipping delivery to %s: %s", recipient, token.reason)
        raise DeliveryCancelled(token.reason or "cancelled")


__all__ = ["SmtpClient", "SmtpError", "SmtpMailSender"]
