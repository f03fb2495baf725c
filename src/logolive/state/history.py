"""In-memory, append-only history of observed logo states.

Indices are absolute: index 0 is the first entry ever appended and an
entry keeps its index for its whole lifetime. When the log is bounded the
oldest entries are evicted and their indices stop resolving.

The log is owned by a single asyncio event loop. ``append`` runs to
completion without awaiting, so readers on the same loop always see whole
entries, and observers run before any reader can see the new tail.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from logolive.exceptions import EntryNotFoundError
from logolive.models.state import LogoState

_logger = logging.getLogger(__name__)

Observer = Callable[[LogoState], None]


class HistoryLog:
    """Ordered log of :class:`LogoState` entries."""

    def __init__(self, *, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._max_entries = max_entries
        self._entries: deque[LogoState] = deque(maxlen=max_entries)
        self._first_index = 0
        self._observers: list[Observer] = []

    @property
    def max_entries(self) -> int | None:
        return self._max_entries

    @property
    def first_index(self) -> int:
        """Absolute index of the oldest retained entry."""
        return self._first_index

    @property
    def end_index(self) -> int:
        """Absolute index the next appended entry will get."""
        return self._first_index + len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def length(self) -> int:
        return len(self._entries)

    def add_observer(self, observer: Observer) -> Callable[[], None]:
        """Call *observer* with every entry appended from now on.

        Returns a callable that removes the observer again.
        """
        self._observers.append(observer)

        def _remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _remove

    def append(self, entry: LogoState) -> int:
        """Append *entry* at the tail and return its absolute index.

        Raises
        ------
        ValueError
            If *entry* repeats the tail's fingerprint or is older than it.
        """
        tail = self.tail()
        if tail is not None:
            if entry.fingerprint == tail.fingerprint:
                raise ValueError("entry repeats the current tail")
            if entry.timestamp < tail.timestamp:
                raise ValueError(f"entry timestamp {entry.timestamp} is older than tail {tail.timestamp}")

        if self._max_entries is not None and len(self._entries) == self._max_entries:
            self._first_index += 1
        self._entries.append(entry)
        index = self.end_index - 1
        _logger.info("History entry %d appended at %s", index, entry.timestamp.isoformat())

        for observer in list(self._observers):
            try:
                observer(entry)
            except Exception:
                _logger.exception("History observer %r failed", observer)
        return index

    def get(self, index: int) -> LogoState:
        """Return the entry at absolute *index*.

        Raises
        ------
        EntryNotFoundError
            If *index* was evicted or has not been appended yet.
        """
        if not self._first_index <= index < self.end_index:
            raise EntryNotFoundError(index, first_index=self._first_index, end_index=self.end_index)
        return self._entries[index - self._first_index]

    def tail(self) -> LogoState | None:
        return self._entries[-1] if self._entries else None

    def snapshot(self, *, limit: int | None = None) -> tuple[LogoState, ...]:
        """Retained entries, oldest first.

        With *limit*, only the oldest ``limit`` retained entries.
        """
        if limit is None:
            return tuple(self._entries)
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        return tuple(entry for _, entry in zip(range(limit), self._entries, strict=False))
