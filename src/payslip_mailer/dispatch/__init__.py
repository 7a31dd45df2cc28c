"""Bulk payslip dispatch: composition, batching and progress reporting."""

from .composer import PayslipEmailComposer
from .pipeline import (
    MISSING_ADDRESS_REASON,
    NO_ADDRESS,
    TIMEOUT_REASON,
    DispatchPipeline,
    partition,
    success_rate,
)
from .reporter import event_payload, format_sse, stream_events

__all__ = [
    "DispatchPipeline",
    "MISSING_ADDRESS_REASON",
    "NO_ADDRESS",
    "PayslipEmailComposer",
    "TIMEOUT_REASON",
    "event_payload",
    "format_sse",
    "partition",
    "stream_events",
    "success_rate",
]
