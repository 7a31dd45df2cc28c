"""Core domain models used across the application."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TypeAlias

FieldValue: TypeAlias = float | str

# One parsed CSV data row, keyed by header name in header order.
Record: TypeAlias = Mapping[str, FieldValue]


@dataclass(frozen=True, slots=True)
class EmailAttachment:
    """Binary attachment carried by an outgoing email."""

    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass(frozen=True, slots=True)
class OutgoingEmail:
    """Fully composed payslip email ready for transport."""

    to: str
    subject: str
    html: str
    attachments: tuple[EmailAttachment, ...] = ()


@dataclass(frozen=True, slots=True)
class Sent:
    """Outcome for a record whose payslip was delivered."""

    address: str


@dataclass(frozen=True, slots=True)
class Failed:
    """Outcome for a record that could not be delivered."""

    address: str
    reason: str


Outcome: TypeAlias = Sent | Failed


@dataclass(frozen=True, slots=True)
class BatchProgress:
    """Position of the pipeline within its batch sequence."""

    current_batch: int
    total_batches: int
    batch_size: int


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Snapshot of run counters emitted at batch transitions."""

    total: int
    sent: int
    failed: int
    current: str
    batch_progress: BatchProgress | None = None


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Final aggregate for a dispatch run."""

    total: int
    sent: int
    failed: int
    success_rate_percent: float
    processing_time: str
    elapsed_seconds: float = 0.0

    @property
    def success_rate(self) -> str:
        """Return the success rate formatted with one decimal place."""
        return f"{self.success_rate_percent:.1f}%"


@dataclass(frozen=True, slots=True)
class RunCompleted:
    """Terminal pipeline event carrying the summary and every outcome."""

    status: ProgressEvent
    summary: RunSummary
    outcomes: tuple[Outcome, ...] = field(default=())


PipelineEvent: TypeAlias = ProgressEvent | RunCompleted


__all__ = [
    "BatchProgress",
    "EmailAttachment",
    "Failed",
    "FieldValue",
    "Outcome",
    "OutgoingEmail",
    "PipelineEvent",
    "ProgressEvent",
    "Record",
    "RunCompleted",
    "RunSummary",
    "Sent",
]
