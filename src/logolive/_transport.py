"""HTTP transport for the upstream logo API."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from logolive._constants import USER_AGENT
from logolive.exceptions import FetchError, FetchErrorKind

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the upstream client.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, url: str) -> Any:
        ...


class HttpTransport:
    """aiohttp transport returning decoded JSON bodies."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 10.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(self, url: str) -> Any:
        """GET *url* and decode the JSON body.

        Raises
        ------
        FetchError
            On network failure, timeout, a non-200 status or a body that is
            not JSON.
        """
        headers = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, headers=headers, timeout=self._timeout) as resp:
                raw = await resp.read()
                if resp.status != 200:
                    raise FetchError(
                        f"HTTP {resp.status}: {raw[:200].decode('utf-8', 'replace')}",
                        kind=FetchErrorKind.STATUS,
                        status_code=resp.status,
                        url=url,
                    )
        except FetchError:
            raise
        except TimeoutError as exc:
            raise FetchError("request timed out", kind=FetchErrorKind.TRANSPORT, url=url) from exc
        except aiohttp.ClientError as exc:
            raise FetchError(f"request failed: {exc}", kind=FetchErrorKind.TRANSPORT, url=url) from exc

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FetchError(
                f"invalid JSON: {raw[:200].decode('utf-8', 'replace')}",
                kind=FetchErrorKind.PAYLOAD,
                url=url,
            ) from exc
