"""Service lifecycle: wires upstream, history, hub and poll loop together."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from logolive._transport import HttpTransport, Transport
from logolive.config import CatchUpPolicy, LogoLiveConfig
from logolive.exceptions import LogoLiveError
from logolive.hub import BroadcastHub, Subscriber, SubscriberSession
from logolive.models.logo import LogoPayload
from logolive.models.state import LogoState
from logolive.poller import PollLoop
from logolive.state.history import HistoryLog
from logolive.upstream import UpstreamClient

_logger = logging.getLogger(__name__)


class LogoLiveService:
    """Owns every long-lived component of the bridge.

    Usage::

        async with LogoLiveService(config) as service:
            ...

    Entering starts the poll loop; leaving stops it, then closes every live
    subscription. No background task outlives the context.
    """

    def __init__(
        self,
        config: LogoLiveConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self.history = HistoryLog(max_entries=config.history_max_entries)
        self.hub = BroadcastHub(queue_size=config.subscriber_queue_size)
        self.history.add_observer(self.hub.notify)
        self._poll_loop: PollLoop | None = None

    @property
    def config(self) -> LogoLiveConfig:
        return self._config

    @property
    def poll_loop(self) -> PollLoop:
        if self._poll_loop is None:
            raise LogoLiveError("Service not started. Use 'async with LogoLiveService(...) as service:'")
        return self._poll_loop

    @property
    def latest_logo(self) -> LogoPayload | None:
        if self._poll_loop is None:
            return None
        return self._poll_loop.latest_logo

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LogoLiveService:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        if self._poll_loop is not None and self._poll_loop.is_running:
            return
        transport = self._transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        upstream = UpstreamClient(transport, self._config.upstream_url)
        self._poll_loop = PollLoop(
            upstream,
            self.history,
            interval=self._config.poll_interval,
            max_backoff=self._config.max_backoff,
        )
        self._poll_loop.start()
        _logger.info("Service started, polling %s", self._config.upstream_url)

    async def stop(self) -> None:
        """Stop producing, then close all subscribers."""
        if self._poll_loop is not None:
            await self._poll_loop.stop()
        await self.hub.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        _logger.info("Service stopped")

    # ------------------------------------------------------------------
    # Live subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: Subscriber) -> SubscriberSession:
        """Register *subscriber* with the hub, applying the catch-up policy.

        Reading the tail and registering happen without yielding to the
        event loop, so no entry can slip in between.
        """
        catch_up: tuple[LogoState, ...] = ()
        if self._config.live_catch_up is CatchUpPolicy.LATEST:
            tail = self.history.tail()
            if tail is not None:
                catch_up = (tail,)
        return self.hub.register(subscriber, catch_up=catch_up)
