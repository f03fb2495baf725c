from __future__ import annotations

from datetime import timedelta

import pytest
from helpers import BASE_TIME, make_state

from logolive.exceptions import EntryNotFoundError
from logolive.models.state import LogoState, fingerprint
from logolive.state.detector import NewEntry, NoChange, detect
from logolive.state.history import HistoryLog

# ---------------------------------------------------------------------------
# Change detector
# ---------------------------------------------------------------------------


def test_detect_first_image_is_new() -> None:
    result = detect(None, b"png-a", now=BASE_TIME)

    assert isinstance(result, NewEntry)
    assert result.entry.image == b"png-a"
    assert result.entry.timestamp == BASE_TIME
    assert result.entry.fingerprint == fingerprint(b"png-a")


def test_detect_identical_image_is_no_change() -> None:
    previous = LogoState(timestamp=BASE_TIME, image=b"png-a")

    result = detect(previous, b"png-a", now=BASE_TIME + timedelta(seconds=5))

    assert result == NoChange(previous=previous)


def test_detect_changed_image_is_new() -> None:
    previous = LogoState(timestamp=BASE_TIME, image=b"png-a")
    later = BASE_TIME + timedelta(seconds=5)

    result = detect(previous, b"png-b", now=later)

    assert isinstance(result, NewEntry)
    assert result.entry.timestamp == later


def test_detect_never_goes_back_in_time() -> None:
    previous = LogoState(timestamp=BASE_TIME, image=b"png-a")

    result = detect(previous, b"png-b", now=BASE_TIME - timedelta(minutes=1))

    assert isinstance(result, NewEntry)
    assert result.entry.timestamp == BASE_TIME


# ---------------------------------------------------------------------------
# History log
# ---------------------------------------------------------------------------


def test_empty_history() -> None:
    history = HistoryLog()

    assert len(history) == 0
    assert history.length() == 0
    assert history.tail() is None
    assert history.snapshot() == ()
    with pytest.raises(EntryNotFoundError):
        history.get(0)


def test_append_get_snapshot_in_order() -> None:
    history = HistoryLog()
    states = [make_state(i) for i in range(5)]

    indices = [history.append(state) for state in states]

    assert indices == [0, 1, 2, 3, 4]
    assert history.length() == 5
    assert history.snapshot() == tuple(states)
    assert history.get(3) is states[3]
    assert history.tail() is states[4]
    with pytest.raises(EntryNotFoundError):
        history.get(5)
    with pytest.raises(EntryNotFoundError):
        history.get(-1)


def test_snapshot_limit_returns_oldest_entries() -> None:
    history = HistoryLog()
    states = [make_state(i) for i in range(4)]
    for state in states:
        history.append(state)

    assert history.snapshot(limit=2) == tuple(states[:2])
    assert history.snapshot(limit=0) == ()
    assert history.snapshot(limit=10) == tuple(states)
    with pytest.raises(ValueError):
        history.snapshot(limit=-1)


def test_snapshot_is_not_affected_by_later_appends() -> None:
    history = HistoryLog()
    history.append(make_state(0))

    snapshot = history.snapshot()
    history.append(make_state(1))

    assert len(snapshot) == 1


def test_append_rejects_adjacent_duplicates() -> None:
    history = HistoryLog()
    history.append(make_state(0, image=b"same"))

    with pytest.raises(ValueError, match="repeats"):
        history.append(make_state(1, image=b"same"))
    assert len(history) == 1


def test_append_rejects_older_timestamps() -> None:
    history = HistoryLog()
    history.append(make_state(5))

    with pytest.raises(ValueError, match="older"):
        history.append(make_state(4))


def test_non_adjacent_duplicates_are_kept() -> None:
    history = HistoryLog()
    history.append(make_state(0, image=b"a"))
    history.append(make_state(1, image=b"b"))
    history.append(make_state(2, image=b"a"))

    assert [entry.image for entry in history.snapshot()] == [b"a", b"b", b"a"]


def test_bounded_history_uses_absolute_indices() -> None:
    history = HistoryLog(max_entries=3)
    states = [make_state(i) for i in range(5)]
    for state in states:
        history.append(state)

    assert len(history) == 3
    assert history.first_index == 2
    assert history.end_index == 5
    assert history.snapshot() == tuple(states[2:])
    assert history.get(2) is states[2]
    assert history.get(4) is states[4]
    with pytest.raises(EntryNotFoundError) as excinfo:
        history.get(1)
    assert excinfo.value.first_index == 2


def test_bounded_history_rejects_invalid_capacity() -> None:
    with pytest.raises(ValueError):
        HistoryLog(max_entries=0)


def test_observers_see_entries_already_visible() -> None:
    history = HistoryLog()
    seen: list[tuple[int, int]] = []

    def observer(entry: LogoState) -> None:
        # entry is the tail by the time observers run
        assert history.tail() is entry
        seen.append((len(history), int(entry.image.decode().split("-")[1])))

    remove = history.add_observer(observer)
    history.append(make_state(0))
    history.append(make_state(1))
    remove()
    history.append(make_state(2))

    assert seen == [(1, 0), (2, 1)]


def test_failing_observer_does_not_break_append() -> None:
    history = HistoryLog()
    seen: list[LogoState] = []

    def broken(_entry: LogoState) -> None:
        raise RuntimeError("boom")

    history.add_observer(broken)
    history.add_observer(seen.append)
    history.append(make_state(0))

    assert len(history) == 1
    assert len(seen) == 1
