"""Serialise pipeline events into a server-sent event stream."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from ..core.models import PipelineEvent, ProgressEvent, RunCompleted

LOGGER = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Failed to process payslips"


def status_payload(event: ProgressEvent) -> dict[str, Any]:
    """Return the wire representation of a progress snapshot."""
    payload: dict[str, Any] = {
        "total": event.total,
        "sent": event.sent,
        "failed": event.failed,
        "current": event.current,
    }
    if event.batch_progress is not None:
        payload["batchProgress"] = {
            "currentBatch": event.batch_progress.current_batch,
            "totalBatches": event.batch_progress.total_batches,
            "batchSize": event.batch_progress.batch_size,
        }
    return payload


def event_payload(event: PipelineEvent) -> dict[str, Any]:
    """Map a pipeline event onto one of the stream's payload shapes."""
    if isinstance(event, RunCompleted):
        return {
            "complete": True,
            "status": status_payload(event.status),
            "summary": {
                "successRate": event.summary.success_rate,
                "processingTime": event.summary.processing_time,
            },
        }
    return {"status": status_payload(event)}


def error_payload(message: str) -> dict[str, Any]:
    return {"error": message or GENERIC_ERROR_MESSAGE}


def format_sse(payload: dict[str, Any]) -> str:
    """Encode ``payload`` as a single ``data:`` frame."""
    return f"data: {json.dumps(payload)}\n\n"


async def stream_events(events: AsyncIterable[PipelineEvent]) -> AsyncIterator[str]:
    """Yield one SSE frame per event, converting failures into an error frame.

    The stream ends after the completion frame or after a single error frame.
    """
    try:
        async for event in events:
            yield format_sse(event_payload(event))
            if isinstance(event, RunCompleted):
                return
    except Exception as exc:  # noqa: BLE001  # pylint: disable=broad-exception-caught
        LOGGER.exception("Error processing payslips")
        yield format_sse(error_payload(str(exc)))


async def single_error(message: str) -> AsyncIterator[str]:
    """Yield a lone terminal error frame."""
    yield format_sse(error_payload(message))


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "error_payload",
    "event_payload",
    "format_sse",
    "single_error",
    "status_payload",
    "stream_events",
]
