"""Upstream logo client.

Fetches the current logo, validates the payload and renders it to the
canonical PNG. Every failure is raised as :class:`FetchError`; retry policy
belongs to the poll loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from logolive._transport import Transport
from logolive.exceptions import FetchError, FetchErrorKind
from logolive.models.logo import LogoPayload
from logolive.render import render_png

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedLogo:
    """Validated payload together with its canonical rendering."""

    payload: LogoPayload
    image: bytes


class UpstreamClient:
    """Client for the upstream logo API."""

    def __init__(self, transport: Transport, url: str) -> None:
        self._transport = transport
        self._url = url

    @property
    def url(self) -> str:
        return self._url

    async def fetch_logo(self) -> FetchedLogo:
        """Fetch, validate and render the current logo."""
        body = await self._transport.get_json(self._url)

        if not isinstance(body, dict):
            raise FetchError(
                f"expected a JSON object, got {type(body).__name__}",
                kind=FetchErrorKind.SCHEMA,
                url=self._url,
            )
        try:
            payload = LogoPayload.model_validate(body)
        except ValidationError as exc:
            raise FetchError(
                f"unexpected payload shape: {exc.error_count()} error(s): {exc.errors()[0]['msg']}",
                kind=FetchErrorKind.SCHEMA,
                url=self._url,
            ) from exc

        try:
            image = render_png(payload)
        except (ValueError, OSError) as exc:
            raise FetchError(f"could not render logo: {exc}", kind=FetchErrorKind.RENDER, url=self._url) from exc

        return FetchedLogo(payload=payload, image=image)

    async def fetch(self) -> bytes:
        """Return the canonical PNG bytes of the current logo."""
        return (await self.fetch_logo()).image
