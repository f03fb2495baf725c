"""logolive - Live history and push bridge for the logo API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("logolive")
except PackageNotFoundError:
    __version__ = "0+local"
from logolive.config import CatchUpPolicy, LogoLiveConfig
from logolive.exceptions import (
    EntryNotFoundError,
    FetchError,
    FetchErrorKind,
    HubClosedError,
    LogoLiveConfigError,
    LogoLiveError,
)
from logolive.hub import BroadcastHub, CloseReason, SessionState, Subscriber, SubscriberSession
from logolive.models import LogoPayload, LogoState, fingerprint
from logolive.poller import PollLoop
from logolive.render import RenderOptions, render_png
from logolive.service import LogoLiveService
from logolive.state.detector import NewEntry, NoChange, detect
from logolive.state.history import HistoryLog
from logolive.upstream import FetchedLogo, UpstreamClient

__all__ = [
    "__version__",
    "BroadcastHub",
    "CatchUpPolicy",
    "CloseReason",
    "EntryNotFoundError",
    "FetchError",
    "FetchErrorKind",
    "FetchedLogo",
    "HistoryLog",
    "HubClosedError",
    "LogoLiveConfig",
    "LogoLiveConfigError",
    "LogoLiveError",
    "LogoLiveService",
    "LogoPayload",
    "LogoState",
    "NewEntry",
    "NoChange",
    "PollLoop",
    "RenderOptions",
    "SessionState",
    "Subscriber",
    "SubscriberSession",
    "UpstreamClient",
    "detect",
    "fingerprint",
    "render_png",
]
