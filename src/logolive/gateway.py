"""aiohttp.web application exposing history, live updates and the current logo.

Endpoints:
  - GET /history              full history, oldest first (``?limit=N``)
  - GET /history/{index}      one entry by absolute index
  - GET /live                 WebSocket; one JSON ``{time, logo}`` text message per new entry
  - GET /logo.png             current logo (``?size=&character=&crop=``)
  - GET /health               liveness and counters
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from aiohttp import WSCloseCode, WSMsgType, web
from pydantic import ValidationError

from logolive.exceptions import EntryNotFoundError, HubClosedError
from logolive.hub import CloseReason
from logolive.models.state import LogoState
from logolive.render import RenderOptions, render_png
from logolive.service import LogoLiveService

_logger = logging.getLogger(__name__)

SERVICE_KEY: web.AppKey[LogoLiveService] = web.AppKey("service", LogoLiveService)

_CLOSE_CODES: dict[CloseReason, int] = {
    CloseReason.UNREGISTERED: WSCloseCode.OK,
    CloseReason.OVERFLOW: WSCloseCode.TRY_AGAIN_LATER,
    CloseReason.SEND_FAILED: WSCloseCode.INTERNAL_ERROR,
    CloseReason.SHUTDOWN: WSCloseCode.GOING_AWAY,
}


class WebSocketSubscriber:
    """Adapts an aiohttp WebSocket to the hub's subscriber protocol."""

    def __init__(self, ws: web.WebSocketResponse) -> None:
        self._ws = ws

    async def send(self, entry: LogoState) -> None:
        await self._ws.send_str(json.dumps(entry.to_wire()))

    async def close(self, reason: CloseReason) -> None:
        if self._ws.closed:
            return
        await self._ws.close(code=_CLOSE_CODES[reason], message=str(reason).encode())


def _parse_limit(request: web.Request) -> int | None:
    raw = request.query.get("limit")
    if raw is None:
        return None
    try:
        limit = int(raw)
    except ValueError:
        raise web.HTTPBadRequest(text=f"limit must be an integer, got {raw!r}") from None
    if limit < 0:
        raise web.HTTPBadRequest(text=f"limit must be >= 0, got {limit}")
    return limit


async def get_history(request: web.Request) -> web.StreamResponse:
    service = request.app[SERVICE_KEY]
    limit = _parse_limit(request)
    entries = service.history.snapshot(limit=limit)
    response = web.json_response([entry.to_wire() for entry in entries])
    if service.config.compress_history:
        # Only compresses when the request's Accept-Encoding allows it.
        response.enable_compression()
    _logger.debug("Served %d history entries", len(entries))
    return response


async def get_history_entry(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    try:
        index = int(request.match_info["index"])
        entry = service.history.get(index)
    except ValueError:
        raise web.HTTPBadRequest(text="index must be an integer") from None
    except EntryNotFoundError as exc:
        raise web.HTTPNotFound(text=str(exc)) from exc
    return web.json_response({"index": index, **entry.to_wire()})


async def live(request: web.Request) -> web.WebSocketResponse:
    service = request.app[SERVICE_KEY]
    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)

    try:
        session = service.subscribe(WebSocketSubscriber(ws))
    except HubClosedError:
        _logger.debug("Rejecting live subscription during shutdown")
        await ws.close(code=WSCloseCode.TRY_AGAIN_LATER, message=b"shutting down")
        return ws

    try:
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                _logger.debug("WebSocket error on subscriber %d: %s", session.id, ws.exception())
                break
            # Client messages carry no meaning.
    finally:
        await service.hub.unregister(session)
    return ws


async def get_logo_png(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    try:
        options = RenderOptions.model_validate(dict(request.query))
    except ValidationError as exc:
        raise web.HTTPBadRequest(text=f"invalid options: {exc.errors()[0]['msg']}") from exc

    payload = service.latest_logo
    if payload is None:
        raise web.HTTPServiceUnavailable(text="no logo fetched yet")
    try:
        image = render_png(payload, options)
    except ValueError as exc:
        raise web.HTTPBadRequest(text=str(exc)) from exc
    return web.Response(body=image, content_type="image/png")


async def get_health(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    body: dict[str, Any] = {
        "status": "ok",
        "entries": len(service.history),
        "subscribers": len(service.hub),
    }
    return web.json_response(body)


def create_app(service: LogoLiveService, *, manage_lifecycle: bool = True) -> web.Application:
    """Build the web application around *service*.

    With *manage_lifecycle* the service is started on application startup
    and stopped on shutdown, before the server closes open connections.
    """
    app = web.Application()
    app[SERVICE_KEY] = service
    app.add_routes(
        [
            web.get("/history", get_history),
            web.get("/history/{index}", get_history_entry),
            web.get("/live", live),
            web.get("/logo.png", get_logo_png),
            web.get("/health", get_health),
        ]
    )

    if manage_lifecycle:

        async def _service_ctx(_app: web.Application) -> AsyncIterator[None]:
            await service.start()
            yield
            await service.stop()

        async def _on_shutdown(_app: web.Application) -> None:
            # Close live sockets before aiohttp waits for handlers to finish.
            await service.stop()

        app.cleanup_ctx.append(_service_ctx)
        app.on_shutdown.append(_on_shutdown)
    return app
