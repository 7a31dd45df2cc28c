"""Batched, paced delivery of payslip emails."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from decimal import ROUND_HALF_UP, Decimal

from ..core.cancellation import CancellationToken, SystemClock
from ..core.config import DispatchProfile, EmailServerConfig
from ..core.interfaces import Clock, MailSender, PayslipRenderer
from ..core.models import (
    BatchProgress,
    Failed,
    Outcome,
    PipelineEvent,
    ProgressEvent,
    Record,
    RunCompleted,
    RunSummary,
    Sent,
)
from ..ingestion.fields import resolve_address
from .composer import PayslipEmailComposer

LOGGER = logging.getLogger(__name__)

NO_ADDRESS = "no address"
MISSING_ADDRESS_REASON = "missing address"
TIMEOUT_REASON = "timeout"
UNKNOWN_ERROR_REASON = "unknown error"

STARTING_LABEL = "Starting batch processing..."
COMPLETE_LABEL = "Complete"


def partition(records: Sequence[Record], batch_size: int) -> list[Sequence[Record]]:
    """Split ``records`` into consecutive slices of at most ``batch_size``."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [
        records[start : start + batch_size]
        for start in range(0, len(records), batch_size)
    ]


def success_rate(sent: int, total: int) -> float:
    """Percentage of ``total`` that was sent, rounded half up to one decimal."""
    if total <= 0:
        return 0.0
    percent = Decimal(sent * 100) / Decimal(total)
    return float(percent.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class DispatchPipeline:
    """Render and email one payslip per record in paced concurrent batches.

    Items in a batch share the event loop; a batch is fully resolved before
    the next one starts. Per-item failures, including timeouts, are recorded
    as :class:`Failed` outcomes and never abort the run. No item is retried.
    """

    def __init__(
        self,
        renderer: PayslipRenderer,
        sender: MailSender,
        profile: DispatchProfile,
        *,
        composer: PayslipEmailComposer | None = None,
        clock: Clock | None = None,
    ) -> None:
        # pylint: disable=too-many-arguments
        """Initialise the pipeline with its collaborators and pacing profile."""
        self._renderer = renderer
        self._sender = sender
        self._profile = profile
        self._composer = composer or PayslipEmailComposer()
        self._clock = clock or SystemClock()
        self._abandoned: set[asyncio.Task[Outcome]] = set()

    @property
    def profile(self) -> DispatchProfile:
        return self._profile

    @property
    def abandoned_count(self) -> int:
        """Number of timed-out items whose work is still running."""
        return len(self._abandoned)

    async def run(
        self, records: Sequence[Record], server: EmailServerConfig
    ) -> AsyncIterator[PipelineEvent]:
        """Process ``records`` and yield progress events, ending with the summary.

        Raises:
            ValueError: If ``records`` is empty.
        """
        if not records:
            raise ValueError("records must not be empty")

        total = len(records)
        batch_size = self._profile.batch_size
        batches = partition(records, batch_size)
        total_batches = len(batches)
        started_at = self._clock.monotonic()
        sent = 0
        failed = 0
        outcomes: list[Outcome] = []

        LOGGER.info(
            "Processing %d record(s) in %d batch(es) of up to %d",
            total,
            total_batches,
            batch_size,
        )
        yield ProgressEvent(
            total=total,
            sent=sent,
            failed=failed,
            current=STARTING_LABEL,
            batch_progress=BatchProgress(0, total_batches, batch_size),
        )

        for number, batch in enumerate(batches, start=1):
            progress = BatchProgress(number, total_batches, len(batch))
            LOGGER.info(
                "Processing batch %d/%d with %d record(s)",
                number,
                total_batches,
                len(batch),
            )
            yield ProgressEvent(
                total=total,
                sent=sent,
                failed=failed,
                current=f"Processing batch {number}/{total_batches}",
                batch_progress=progress,
            )

            batch_outcomes = await self._run_batch(batch, server)
            outcomes.extend(batch_outcomes)
            batch_sent = sum(1 for outcome in batch_outcomes if isinstance(outcome, Sent))
            sent += batch_sent
            failed += len(batch_outcomes) - batch_sent

            yield ProgressEvent(
                total=total,
                sent=sent,
                failed=failed,
                current=f"Completed batch {number}/{total_batches}",
                batch_progress=progress,
            )

            if number < total_batches and self._profile.inter_batch_delay > 0:
                LOGGER.debug(
                    "Waiting %.2fs before next batch", self._profile.inter_batch_delay
                )
                await self._clock.sleep(self._profile.inter_batch_delay)

        elapsed = self._clock.monotonic() - started_at
        summary = RunSummary(
            total=total,
            sent=sent,
            failed=failed,
            success_rate_percent=success_rate(sent, total),
            processing_time=f"Processed in {total_batches} batches",
            elapsed_seconds=elapsed,
        )
        LOGGER.info(
            "Processing complete: %d sent, %d failed (%s) in %.1fs",
            sent,
            failed,
            summary.success_rate,
            elapsed,
        )
        if self._abandoned:
            LOGGER.warning(
                "%d timed-out item(s) still running in the background",
                len(self._abandoned),
            )
        yield RunCompleted(
            status=ProgressEvent(
                total=total, sent=sent, failed=failed, current=COMPLETE_LABEL
            ),
            summary=summary,
            outcomes=tuple(outcomes),
        )

    async def _run_batch(
        self, batch: Sequence[Record], server: EmailServerConfig
    ) -> list[Outcome]:
        results = await asyncio.gather(
            *(
                self._run_item(index, record, server)
                for index, record in enumerate(batch)
            ),
            return_exceptions=True,
        )
        outcomes: list[Outcome] = []
        for record, result in zip(batch, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                LOGGER.error("Unexpected error processing record: %s", result)
                outcomes.append(
                    Failed(resolve_address(record) or NO_ADDRESS, _describe(result))
                )
            else:
                outcomes.append(result)
        return outcomes

    async def _run_item(
        self, index: int, record: Record, server: EmailServerConfig
    ) -> Outcome:
        if index > 0 and self._profile.inter_item_stagger > 0:
            await self._clock.sleep(index * self._profile.inter_item_stagger)

        outcome = await self._process_with_timeout(record, server)
        if isinstance(outcome, Sent):
            LOGGER.info("Successfully sent to: %s", outcome.address)
        else:
            LOGGER.warning(
                "Failed to send to: %s Reason: %s", outcome.address, outcome.reason
            )
        return outcome

    async def _process_with_timeout(
        self, record: Record, server: EmailServerConfig
    ) -> Outcome:
        address = resolve_address(record)
        if address is None:
            return Failed(NO_ADDRESS, MISSING_ADDRESS_REASON)

        token = CancellationToken()
        work = asyncio.ensure_future(self._process(record, address, server, token))
        timer = asyncio.ensure_future(self._clock.sleep(self._profile.per_item_timeout))
        try:
            done, _ = await asyncio.wait(
                {work, timer}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            token.cancel("run cancelled")
            work.cancel()
            raise
        finally:
            if not timer.done():
                timer.cancel()

        if work in done:
            return work.result()

        token.cancel(TIMEOUT_REASON)
        self._abandon(work, address)
        return Failed(address, TIMEOUT_REASON)

    async def _process(
        self,
        record: Record,
        address: str,
        server: EmailServerConfig,
        token: CancellationToken,
    ) -> Outcome:
        try:
            pdf = await self._renderer.render(record, token)
            message = self._composer.compose(record, address, pdf)
            await self._sender.send(message, server, cancel_token=token)
        except Exception as exc:  # noqa: BLE001  # pylint: disable=broad-exception-caught
            return Failed(address, _describe(exc))
        return Sent(address)

    def _abandon(self, work: asyncio.Task[Outcome], address: str) -> None:
        LOGGER.warning(
            "Processing for %s exceeded %.1fs; abandoning in-flight work",
            address,
            self._profile.per_item_timeout,
        )
        self._abandoned.add(work)

        def _finished(task: asyncio.Task[Outcome]) -> None:
            self._abandoned.discard(task)
            if task.cancelled():
                return
            late = task.result()
            if isinstance(late, Sent):
                # The transport could not be stopped; the email went out anyway.
                LOGGER.warning("Abandoned delivery to %s completed late", address)
            else:
                LOGGER.debug("Abandoned work for %s ended: %s", address, late.reason)

        work.add_done_callback(_finished)


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__ or UNKNOWN_ERROR_REASON


__all__ = [
    "DispatchPipeline",
    "MISSING_ADDRESS_REASON",
    "NO_ADDRESS",
    "TIMEOUT_REASON",
    "partition",
    "success_rate",
]
