"""Shared test doubles."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from logolive._constants import GLYPH_PANELS, PANEL_PIXELS
from logolive.exceptions import FetchError
from logolive.hub import CloseReason
from logolive.models.state import LogoState
from logolive.upstream import FetchedLogo

BASE_TIME = datetime(2026, 1, 1, tzinfo=UTC)


def logo_body(color: str = "#112233", *, characters: int = len(GLYPH_PANELS)) -> dict[str, Any]:
    """Upstream body with every pixel of every panel set to *color*."""
    return {
        "logo": [
            [[color] * PANEL_PIXELS for _ in GLYPH_PANELS[char_index]] for char_index in range(characters)
        ]
    }


def make_state(i: int, *, image: bytes | None = None) -> LogoState:
    return LogoState(
        timestamp=BASE_TIME + timedelta(seconds=i),
        image=image if image is not None else f"image-{i}".encode(),
    )


class StepClock:
    """Clock advancing one second per call."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self._now = start

    def __call__(self) -> datetime:
        now = self._now
        self._now += timedelta(seconds=1)
        return now


class ScriptedSource:
    """Logo source replaying a list of results; the last one repeats."""

    def __init__(self, steps: list[FetchedLogo | FetchError]) -> None:
        self._steps = list(steps)
        self.calls = 0

    async def fetch_logo(self) -> FetchedLogo:
        self.calls += 1
        step = self._steps.pop(0) if len(self._steps) > 1 else self._steps[0]
        if isinstance(step, FetchError):
            raise step
        return step


class RecordingSubscriber:
    """Subscriber keeping everything it was sent."""

    def __init__(self) -> None:
        self.received: list[LogoState] = []
        self.closed_with: CloseReason | None = None

    async def send(self, entry: LogoState) -> None:
        self.received.append(entry)

    async def close(self, reason: CloseReason) -> None:
        self.closed_with = reason


class StalledSubscriber(RecordingSubscriber):
    """Subscriber whose first send never completes."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def send(self, entry: LogoState) -> None:
        await self.release.wait()
        self.received.append(entry)


class FailingSubscriber(RecordingSubscriber):
    async def send(self, entry: LogoState) -> None:
        raise ConnectionResetError("peer went away")


async def settle(rounds: int = 10) -> None:
    """Let ready tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)
