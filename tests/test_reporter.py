"""Tests for server-sent event serialisation of pipeline events."""

from __future__ import annotations

import json

import pytest

from payslip_mailer.core.models import (
    BatchProgress,
    ProgressEvent,
    RunCompleted,
    RunSummary,
)
from payslip_mailer.dispatch.reporter import (
    event_payload,
    format_sse,
    single_error,
    stream_events,
)


def _decode(frame: str) -> dict:
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    return json.loads(frame[len("data: ") : -2])


def _completed() -> RunCompleted:
    return RunCompleted(
        status=ProgressEvent(total=13, sent=12, failed=1, current="Complete"),
        summary=RunSummary(
            total=13,
            sent=12,
            failed=1,
            success_rate_percent=92.3,
            processing_time="Processed in 3 batches",
        ),
    )


def test_progress_payload_uses_camel_case_batch_fields() -> None:
    event = ProgressEvent(
        total=4,
        sent=1,
        failed=1,
        current="Completed batch 1/2",
        batch_progress=BatchProgress(1, 2, 2),
    )

    assert event_payload(event) == {
        "status": {
            "total": 4,
            "sent": 1,
            "failed": 1,
            "current": "Completed batch 1/2",
            "batchProgress": {"currentBatch": 1, "totalBatches": 2, "batchSize": 2},
        }
    }


def test_completion_payload_has_summary_strings() -> None:
    payload = event_payload(_completed())

    assert payload["complete"] is True
    assert "batchProgress" not in payload["status"]
    assert payload["summary"] == {
        "successRate": "92.3%",
        "processingTime": "Processed in 3 batches",
    }


def test_format_sse_frames_json() -> None:
    assert format_sse({"error": "boom"}) == 'data: {"error": "boom"}\n\n'


@pytest.mark.asyncio
async def test_stream_stops_after_completion() -> None:
    async def events():
        yield ProgressEvent(total=13, sent=0, failed=0, current="Starting")
        yield _completed()
        yield ProgressEvent(total=13, sent=0, failed=0, current="never sent")

    frames = [frame async for frame in stream_events(events())]

    assert len(frames) == 2
    assert _decode(frames[-1])["complete"] is True


@pytest.mark.asyncio
async def test_stream_converts_unexpected_errors_to_one_error_frame() -> None:
    async def events():
        yield ProgressEvent(total=1, sent=0, failed=0, current="Starting")
        raise RuntimeError("disk on fire")

    frames = [frame async for frame in stream_events(events())]

    assert [_decode(frame) for frame in frames][1:] == [{"error": "disk on fire"}]


@pytest.mark.asyncio
async def test_single_error_uses_generic_message_when_blank() -> None:
    frames = [frame async for frame in single_error("")]

    assert [_decode(frame) for frame in frames] == [
        {"error": "Failed to process payslips"}
    ]
