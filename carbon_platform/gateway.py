"""Transport gateway: the one place that touches HTTP.

The core only depends on the ``TransportGateway`` protocol. ``HttpxGateway``
is the production implementation backed by ``httpx.AsyncClient``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Mapping, Protocol

import httpx

from .config import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayResponse:
    status_code: int
    body_text: str


class GatewayError(Exception):
    """Raised when a request could not be completed (connect, timeout, protocol)."""


class TransportGateway(Protocol):
    async def send(
        self,
        method: str,
        path: str,
        json_body: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> GatewayResponse:
        ...


class HttpxGateway:
    """HTTP gateway over a shared ``httpx.AsyncClient``. No retries."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        # Relative request paths are appended to the base path
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )

    async def send(
        self,
        method: str,
        path: str,
        json_body: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> GatewayResponse:
        logger.debug("%s %s", method, path)
        try:
            response = await self._client.request(
                method,
                path.lstrip("/"),
                json=json_body,
                headers=dict(headers or {}),
            )
        except httpx.HTTPError as e:
            raise GatewayError(f"{method} {path} failed: {e}") from e
        return GatewayResponse(status_code=response.status_code, body_text=response.text)

    async def aclose(self) -> None:
        await self._client.aclose()


@asynccontextmanager
async def open_gateway(
    base_url: str,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncGenerator[HttpxGateway, None]:
    """Provide an ``HttpxGateway`` that is closed when the block exits.

    Examples:
        async with open_gateway("https://host/carbon/") as gateway:
            response = await gateway.send("GET", "service/info")
    """
    gateway = HttpxGateway(base_url=base_url, timeout_seconds=timeout_seconds, transport=transport)
    try:
        yield gateway
    finally:
        await gateway.aclose()
