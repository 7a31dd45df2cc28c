"""Transport adapters for outbound mail delivery."""

from .smtp_client import SmtpClient, SmtpError, SmtpMailSender

__all__ = ["SmtpClient", "SmtpError", "SmtpMailSender"]
