"""Change detection between the stored tail and a freshly fetched image.

This module contains *no* I/O. The poll loop supplies the current time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from logolive.models.state import LogoState, fingerprint


@dataclass(frozen=True, slots=True)
class NewEntry:
    entry: LogoState


@dataclass(frozen=True, slots=True)
class NoChange:
    previous: LogoState


def detect(previous: LogoState | None, candidate: bytes, *, now: datetime) -> NewEntry | NoChange:
    """Decide whether *candidate* warrants a new history entry.

    A new entry never carries a timestamp older than *previous*, so history
    timestamps stay non-decreasing even when the wall clock steps back.
    """
    candidate_fingerprint = fingerprint(candidate)
    if previous is not None and previous.fingerprint == candidate_fingerprint:
        return NoChange(previous=previous)

    timestamp = now if previous is None else max(now, previous.timestamp)
    return NewEntry(entry=LogoState(timestamp=timestamp, image=candidate, fingerprint=candidate_fingerprint))
