"""Cancellation and clock primitives shared by the pipeline and collaborators."""

from __future__ import annotations

import asyncio
import threading
import time


class CancellationToken:
    """Thread-safe flag signalling that a caller stopped waiting for work.

    Work running in worker threads polls :attr:`cancelled` at safe points.
    Work that is already talking to a server cannot be interrupted and will
    run to completion even after the token is set.
    """

    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Set the token; later calls keep the first reason."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()


class SystemClock:
    """Clock backed by the running event loop."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def monotonic(self) -> float:
        return time.monotonic()


__all__ = ["CancellationToken", "SystemClock"]
