"""Data models for logolive."""

from logolive.models.logo import LogoPayload, parse_color
from logolive.models.state import LogoState, fingerprint

__all__ = [
    "LogoPayload",
    "LogoState",
    "fingerprint",
    "parse_color",
]
