"""Custom exception hierarchy for logolive."""

from __future__ import annotations

from enum import StrEnum


class LogoLiveError(Exception):
    """Base exception for all logolive errors."""


class LogoLiveConfigError(LogoLiveError):
    """Invalid or missing configuration."""


class FetchErrorKind(StrEnum):
    TRANSPORT = "transport"
    STATUS = "status"
    PAYLOAD = "payload"
    SCHEMA = "schema"
    RENDER = "render"


class FetchError(LogoLiveError):
    """Fetching or rendering the upstream logo failed.

    Every failure of a single upstream poll ends up here, whatever the
    layer it came from. ``kind`` tells them apart for logging.
    """

    def __init__(
        self,
        reason: str,
        *,
        kind: FetchErrorKind,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.reason = reason
        self.kind = kind
        self.status_code = status_code
        self.url = url
        super().__init__(f"{kind}: {reason}")


class EntryNotFoundError(LogoLiveError, LookupError):
    """History index outside the retained window."""

    def __init__(self, index: int, *, first_index: int, end_index: int) -> None:
        self.index = index
        self.first_index = first_index
        self.end_index = end_index
        super().__init__(f"history index {index} not in [{first_index}, {end_index})")


class HubClosedError(LogoLiveError):
    """Subscription attempted while the broadcast hub is shutting down."""
