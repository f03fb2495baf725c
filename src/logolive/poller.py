"""Background poll loop: fetch, detect change, append."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from logolive.exceptions import FetchError
from logolive.models.logo import LogoPayload
from logolive.models.state import LogoState
from logolive.state.detector import NewEntry, detect
from logolive.state.history import HistoryLog
from logolive.upstream import FetchedLogo

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LogoSource(Protocol):
    async def fetch_logo(self) -> FetchedLogo:
        ...


class PollLoop:
    """Recurring upstream poll owned by the service lifecycle.

    A failed fetch never stops the loop: the state is left unchanged and
    the next attempt waits ``interval * 2**(failures - 1)`` seconds, capped
    at ``max_backoff``.
    """

    def __init__(
        self,
        source: LogoSource,
        history: HistoryLog,
        *,
        interval: float,
        max_backoff: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._source = source
        self._history = history
        self._interval = interval
        self._max_backoff = max(max_backoff if max_backoff is not None else interval, interval)
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._consecutive_failures = 0
        self._polls = 0
        self._latest_logo: LogoPayload | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def polls(self) -> int:
        return self._polls

    @property
    def latest_logo(self) -> LogoPayload | None:
        """Payload of the last successful fetch, changed or not."""
        return self._latest_logo

    def next_delay(self) -> float:
        """Seconds to wait before the next poll."""
        if self._consecutive_failures == 0:
            return self._interval
        exponent = min(self._consecutive_failures - 1, 32)
        return min(self._interval * 2**exponent, self._max_backoff)

    async def poll_once(self) -> LogoState | None:
        """Run one poll cycle. Returns the appended entry, if any.

        Raises
        ------
        FetchError
            If the upstream fetch failed. The history is untouched.
        """
        self._polls += 1
        try:
            fetched = await self._source.fetch_logo()
        except FetchError:
            self._consecutive_failures += 1
            raise

        if self._consecutive_failures:
            _logger.info("Upstream recovered after %d failed poll(s)", self._consecutive_failures)
        self._consecutive_failures = 0
        self._latest_logo = fetched.payload

        result = detect(self._history.tail(), fetched.image, now=self._clock())
        if not isinstance(result, NewEntry):
            _logger.debug("Logo unchanged")
            return None
        self._history.append(result.entry)
        return result.entry

    async def run(self) -> None:
        """Poll until :meth:`stop` is called."""
        _logger.info("Poll loop started (interval %.1fs)", self._interval)
        while not self._stop_event.is_set():
            try:
                await self.poll_once()
            except FetchError as exc:
                _logger.warning(
                    "Logo fetch failed (%s, %d in a row): %s",
                    exc.kind,
                    self._consecutive_failures,
                    exc.reason,
                )
            except Exception:
                self._consecutive_failures += 1
                _logger.exception("Unexpected error during poll")

            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.next_delay())
        _logger.info("Poll loop stopped")

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run(), name="logolive-poll-loop")

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it, cancelling an in-flight fetch."""
        self._stop_event.set()
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
