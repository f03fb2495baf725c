from __future__ import annotations

import base64
import hashlib
from datetime import UTC, datetime, timedelta, timezone

import pytest
from helpers import logo_body
from pydantic import ValidationError

from logolive._constants import UNLIT_RGB
from logolive.models.logo import LogoPayload, parse_color
from logolive.models.state import LogoState


def test_parse_color_accepts_hash_and_bare_hex() -> None:
    assert parse_color("#ff8000") == (255, 128, 0)
    assert parse_color("00ff10") == (0, 255, 16)


def test_parse_color_unlit_for_other_lengths() -> None:
    assert parse_color("") == UNLIT_RGB
    assert parse_color("#fff") == UNLIT_RGB


@pytest.mark.parametrize("value", ["#gg0000", " f f f", "#+f+f+f", "0x1234"])
def test_parse_color_rejects_non_hex(value: str) -> None:
    with pytest.raises(ValueError, match="invalid colour"):
        parse_color(value)


def test_payload_parses_full_logo() -> None:
    payload = LogoPayload.model_validate(logo_body("#010203"))

    assert len(payload.characters) == 7
    assert len(payload.characters[2]) == 8
    assert payload.characters[2][0][63] == (1, 2, 3)


def test_payload_allows_partial_grid() -> None:
    body = {"logo": [[["#ffffff"] * 10], []]}
    payload = LogoPayload.model_validate(body)

    assert payload.characters[0][0] == ((255, 255, 255),) * 10
    assert payload.characters[1] == ()


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"logo": "nope"},
        {"logo": [[["#000000"]]], "extra": 1},
        {"logo": [["#000000"]]},
        {"logo": [[[1, 2, 3]]]},
        {"logo": [[["#zzzzzz"]]]},
        {"logo": [[["#000000"] * 65]]},
        {"logo": [[["#000000"]] * 5]},
        {"logo": [[]] * 8},
    ],
)
def test_payload_rejects_unexpected_shapes(body: dict) -> None:
    with pytest.raises(ValidationError):
        LogoPayload.model_validate(body)


def test_logo_state_computes_fingerprint() -> None:
    state = LogoState(timestamp=datetime(2026, 1, 1, tzinfo=UTC), image=b"png")
    assert state.fingerprint == hashlib.sha256(b"png").hexdigest()


def test_logo_state_rejects_wrong_fingerprint() -> None:
    with pytest.raises(ValidationError):
        LogoState(timestamp=datetime(2026, 1, 1, tzinfo=UTC), image=b"png", fingerprint="abc")


def test_logo_state_normalizes_timestamps_to_utc() -> None:
    naive = LogoState(timestamp=datetime(2026, 1, 1, 12, 0), image=b"a")
    assert naive.timestamp.tzinfo is UTC

    offset = LogoState(timestamp=datetime(2026, 1, 1, 13, 0, tzinfo=timezone(timedelta(hours=1))), image=b"a")
    assert offset.timestamp == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    assert offset.timestamp.utcoffset() == timedelta(0)


def test_logo_state_wire_format() -> None:
    state = LogoState(timestamp=datetime(2026, 1, 1, 12, 30, tzinfo=UTC), image=b"\x89PNG\x00")

    wire = state.to_wire()

    assert wire == {
        "time": "2026-01-01T12:30:00+00:00",
        "logo": base64.b64encode(b"\x89PNG\x00").decode("ascii"),
    }
    assert LogoState.from_wire(wire) == state


def test_logo_state_is_immutable() -> None:
    state = LogoState(timestamp=datetime(2026, 1, 1, tzinfo=UTC), image=b"a")
    with pytest.raises(ValidationError):
        state.image = b"b"  # type: ignore[misc]
