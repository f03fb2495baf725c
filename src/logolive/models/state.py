"""History entry model."""

from __future__ import annotations

import base64
import hashlib
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def fingerprint(image: bytes) -> str:
    """Content fingerprint of canonical image bytes (SHA-256 hex)."""
    return hashlib.sha256(image).hexdigest()


class LogoState(BaseModel):
    """One observed logo state.

    Parameters
    ----------
    timestamp : datetime
        When the state was observed (UTC).
    image : bytes
        Canonical PNG bytes.
    fingerprint : str
        SHA-256 hex digest of ``image``. Computed when not supplied.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: datetime
    image: bytes
    fingerprint: str = Field(default="")

    @field_validator("timestamp")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @model_validator(mode="after")
    def _fill_fingerprint(self) -> LogoState:
        expected = fingerprint(self.image)
        if not self.fingerprint:
            object.__setattr__(self, "fingerprint", expected)
        elif self.fingerprint != expected:
            raise ValueError("fingerprint does not match image")
        return self

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready ``{"time", "logo"}`` representation."""
        return {
            "time": self.timestamp.isoformat(),
            "logo": base64.b64encode(self.image).decode("ascii"),
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> LogoState:
        """Inverse of :meth:`to_wire`."""
        return cls(
            timestamp=datetime.fromisoformat(data["time"]),
            image=base64.b64decode(data["logo"], validate=True),
        )
