"""Protocol interfaces for decoupling components."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, TypeAlias

from .cancellation import CancellationToken
from .models import OutgoingEmail, Record

if TYPE_CHECKING:
    from .config import EmailServerConfig


class PayslipMailerError(Exception):
    """Base class for errors raised by the payslip mailer."""


class EmptyInputError(PayslipMailerError, ValueError):
    """Raised when CSV input lacks a header row or any data rows."""


class RenderError(PayslipMailerError):
    """Raised when a payslip document cannot be produced."""


class DeliveryCancelled(PayslipMailerError):
    """Raised when abandoned work notices its cancellation token."""


# Returns a short random suffix for generated employee identifiers.
IdProvider: TypeAlias = Callable[[], str]


class PayslipRenderer(Protocol):
    """Produces a payslip document for one record."""

    async def render(
        self, record: Record, cancel_token: CancellationToken | None = None
    ) -> bytes:
        """Return the rendered payslip as PDF bytes."""
        raise NotImplementedError


class MailSender(Protocol):
    """Delivers composed emails through an SMTP server.

    Implementations must tolerate concurrent calls up to the batch size.
    """

    async def send(
        self,
        message: OutgoingEmail,
        server: EmailServerConfig,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Deliver ``message``; raise on failure."""
        raise NotImplementedError


class Clock(Protocol):
    """Source of time for pacing and timeouts."""

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for ``seconds``."""
        raise NotImplementedError

    def monotonic(self) -> float:
        """Return a monotonic timestamp in seconds."""
        raise NotImplementedError


__all__ = [
    "Clock",
    "DeliveryCancelled",
    "EmptyInputError",
    "IdProvider",
    "MailSender",
    "PayslipMailerError",
    "PayslipRenderer",
    "RenderError",
]
