"""Service configuration for logolive."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from logolive._constants import UPSTREAM_URL
from logolive.exceptions import LogoLiveConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


class CatchUpPolicy(StrEnum):
    """What a live subscriber receives right after connecting."""

    NONE = "none"
    LATEST = "latest"


@dataclasses.dataclass(frozen=True)
class LogoLiveConfig:
    """Service configuration.

    Parameters
    ----------
    upstream_url : str
        Logo API endpoint returning the current pixel grid.
    poll_interval : float
        Seconds between two upstream polls.
    max_backoff : float
        Upper bound, in seconds, for the wait after consecutive failed polls.
        The wait doubles with every failure starting at ``poll_interval``.
    request_timeout : float
        Total timeout for one upstream request.
    history_max_entries : int or None
        Keep at most this many history entries (oldest evicted first).
        ``None`` keeps everything for the lifetime of the process.
    subscriber_queue_size : int
        Pending deliveries a live subscriber may fall behind by before it
        is disconnected.
    live_catch_up : CatchUpPolicy
        Whether a new live subscriber first receives the latest entry.
    host : str
        Interface the HTTP server binds to.
    port : int
        Port the HTTP server listens on.
    compress_history : bool
        Gzip history responses for clients that accept it.
    """

    upstream_url: str = UPSTREAM_URL
    poll_interval: float = 5.0
    max_backoff: float = 60.0
    request_timeout: float = 10.0
    history_max_entries: int | None = None
    subscriber_queue_size: int = 32
    live_catch_up: CatchUpPolicy = CatchUpPolicy.LATEST
    host: str = "0.0.0.0"
    port: int = 3000
    compress_history: bool = True

    def __post_init__(self) -> None:
        if not self.upstream_url:
            raise LogoLiveConfigError("upstream_url must be non-empty")
        if self.poll_interval <= 0:
            raise LogoLiveConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.max_backoff < self.poll_interval:
            raise LogoLiveConfigError(
                f"max_backoff ({self.max_backoff}) must be >= poll_interval ({self.poll_interval})"
            )
        if self.request_timeout <= 0:
            raise LogoLiveConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.history_max_entries is not None and self.history_max_entries < 1:
            raise LogoLiveConfigError(f"history_max_entries must be >= 1, got {self.history_max_entries}")
        if self.subscriber_queue_size < 1:
            raise LogoLiveConfigError(f"subscriber_queue_size must be >= 1, got {self.subscriber_queue_size}")
        if not 0 <= self.port <= 65535:
            raise LogoLiveConfigError(f"port out of range: {self.port}")
        # Accept plain strings from callers; the dataclass is frozen.
        try:
            object.__setattr__(self, "live_catch_up", CatchUpPolicy(self.live_catch_up))
        except ValueError as exc:
            raise LogoLiveConfigError(f"unknown live_catch_up policy: {self.live_catch_up!r}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> LogoLiveConfig:
        """Create configuration from ``LOGOLIVE_*`` environment variables.

        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        LogoLiveConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "LOGOLIVE_UPSTREAM_URL": ("upstream_url", str),
            "LOGOLIVE_POLL_INTERVAL": ("poll_interval", float),
            "LOGOLIVE_MAX_BACKOFF": ("max_backoff", float),
            "LOGOLIVE_REQUEST_TIMEOUT": ("request_timeout", float),
            "LOGOLIVE_SUBSCRIBER_QUEUE_SIZE": ("subscriber_queue_size", int),
            "LOGOLIVE_LIVE_CATCH_UP": ("live_catch_up", str),
            "LOGOLIVE_HOST": ("host", str),
            "LOGOLIVE_PORT": ("port", int),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, convert) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val.strip())
            except ValueError as exc:
                raise LogoLiveConfigError(f"{env_key} has an invalid value: {val!r}") from exc

        # 0 or empty means unbounded
        max_entries_env = env.get("LOGOLIVE_HISTORY_MAX_ENTRIES")
        if max_entries_env is not None and "history_max_entries" not in overrides:
            try:
                max_entries = int(max_entries_env) if max_entries_env.strip() else 0
            except ValueError as exc:
                raise LogoLiveConfigError(
                    f"LOGOLIVE_HISTORY_MAX_ENTRIES has an invalid value: {max_entries_env!r}"
                ) from exc
            config_kwargs["history_max_entries"] = max_entries or None

        if "compress_history" not in overrides:
            config_kwargs["compress_history"] = _env_bool(env.get("LOGOLIVE_COMPRESS_HISTORY"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
