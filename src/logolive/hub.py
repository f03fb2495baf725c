"""Broadcast hub fanning history entries out to live subscribers.

Every subscriber gets its own :class:`SubscriberSession`: a bounded queue
and a drain task that writes queued entries to the subscriber one at a
time. ``notify`` only enqueues, so a slow subscriber never delays the
producer or its peers. A subscriber that falls ``queue_size`` entries
behind is disconnected instead of silently skipping entries.

Session lifecycle::

    active --(unregister | overflow | send failure | shutdown)--> closing --> closed

The registry is owned by the hub. Sessions expose read-only state; all
transitions go through hub operations.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from collections.abc import Iterable
from enum import StrEnum
from typing import Protocol

from logolive.exceptions import HubClosedError
from logolive.models.state import LogoState

_logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class CloseReason(StrEnum):
    UNREGISTERED = "unregistered"
    OVERFLOW = "overflow"
    SEND_FAILED = "send_failed"
    SHUTDOWN = "shutdown"


class Subscriber(Protocol):
    """Connection-side half of a live subscription."""

    async def send(self, entry: LogoState) -> None:
        ...

    async def close(self, reason: CloseReason) -> None:
        ...


class SubscriberSession:
    """Hub-side state of one live subscriber."""

    def __init__(self, session_id: int, subscriber: Subscriber, queue_size: int) -> None:
        self._id = session_id
        self._subscriber = subscriber
        self._queue: asyncio.Queue[LogoState] = asyncio.Queue(maxsize=queue_size)
        self._state = SessionState.ACTIVE
        self._close_reason: CloseReason | None = None
        self._task: asyncio.Task[None] | None = None
        self._closed = asyncio.Event()
        self._delivered = 0

    def __repr__(self) -> str:
        return f"<SubscriberSession id={self._id} state={self._state}>"

    @property
    def id(self) -> int:
        return self._id

    @property
    def subscriber(self) -> Subscriber:
        return self._subscriber

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def close_reason(self) -> CloseReason | None:
        return self._close_reason

    @property
    def pending(self) -> int:
        """Entries queued but not yet written to the subscriber."""
        return self._queue.qsize()

    @property
    def delivered(self) -> int:
        return self._delivered

    async def wait_closed(self) -> None:
        await self._closed.wait()

    def _offer(self, entry: LogoState) -> bool:
        try:
            self._queue.put_nowait(entry)
        except asyncio.QueueFull:
            return False
        return True

    async def _drain(self) -> None:
        while True:
            entry = await self._queue.get()
            await self._subscriber.send(entry)
            self._delivered += 1

    def _discard_pending(self) -> int:
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            dropped += 1
        return dropped


class BroadcastHub:
    """Registry of live subscriber sessions.

    Usage::

        session = hub.register(subscriber, catch_up=[history.tail()])
        hub.notify(entry)          # from the producer, never blocks
        await hub.unregister(session)
        await hub.close()          # on shutdown
    """

    def __init__(self, *, queue_size: int = 32) -> None:
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")
        self._queue_size = queue_size
        self._sessions: dict[int, SubscriberSession] = {}
        self._ids = itertools.count(1)
        self._closing: set[asyncio.Task[None]] = set()
        self._closed = False

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def sessions(self) -> tuple[SubscriberSession, ...]:
        """Currently active sessions, in registration order."""
        return tuple(self._sessions.values())

    def register(self, subscriber: Subscriber, *, catch_up: Iterable[LogoState] = ()) -> SubscriberSession:
        """Start delivering to *subscriber*.

        *catch_up* entries are queued before any later ``notify`` so the
        subscriber sees them first. The session receives every entry
        notified after this call returns.

        Raises
        ------
        HubClosedError
            If the hub is shutting down.
        """
        if self._closed:
            raise HubClosedError("broadcast hub is closed")

        initial = tuple(catch_up)
        if len(initial) > self._queue_size:
            raise ValueError(f"catch-up of {len(initial)} entries exceeds queue size {self._queue_size}")

        session = SubscriberSession(next(self._ids), subscriber, self._queue_size)
        for entry in initial:
            session._offer(entry)
        session._task = asyncio.create_task(self._run(session), name=f"logolive-subscriber-{session.id}")
        self._sessions[session.id] = session
        _logger.info("Subscriber %d registered (%d active)", session.id, len(self._sessions))
        return session

    def notify(self, entry: LogoState) -> None:
        """Queue *entry* for every active session without waiting on any."""
        for session in list(self._sessions.values()):
            if session.state is not SessionState.ACTIVE:
                continue
            if not session._offer(entry):
                _logger.warning(
                    "Subscriber %d fell %d entries behind, disconnecting",
                    session.id,
                    self._queue_size,
                )
                self._begin_close(session, CloseReason.OVERFLOW)

    async def unregister(self, session: SubscriberSession) -> None:
        """Stop delivering to *session* and release it. Idempotent."""
        self._begin_close(session, CloseReason.UNREGISTERED)
        await session.wait_closed()

    async def close(self) -> None:
        """Close every session and refuse new registrations."""
        self._closed = True
        for session in list(self._sessions.values()):
            self._begin_close(session, CloseReason.SHUTDOWN)
        pending = list(self._closing)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        _logger.info("Broadcast hub closed")

    async def _run(self, session: SubscriberSession) -> None:
        try:
            await session._drain()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _logger.warning("Subscriber %d send failed: %s", session.id, exc)
            self._begin_close(session, CloseReason.SEND_FAILED)

    def _begin_close(self, session: SubscriberSession, reason: CloseReason) -> None:
        if session.state is not SessionState.ACTIVE:
            return
        session._state = SessionState.CLOSING
        session._close_reason = reason
        self._sessions.pop(session.id, None)
        task = asyncio.create_task(self._finish_close(session), name=f"logolive-close-{session.id}")
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _finish_close(self, session: SubscriberSession) -> None:
        try:
            task = session._task
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            dropped = session._discard_pending()
            try:
                await session.subscriber.close(session.close_reason or CloseReason.UNREGISTERED)
            except Exception:
                _logger.debug("Closing subscriber %d failed", session.id, exc_info=True)
        finally:
            session._state = SessionState.CLOSED
            session._closed.set()
        _logger.info(
            "Subscriber %d closed (%s, %d undelivered, %d active)",
            session.id,
            session.close_reason,
            dropped,
            len(self._sessions),
        )
