"""Carbon service client adapter with session header and error mapping."""

from __future__ import annotations

import logging
from typing import Any

from .context import RunContext
from .envelope import RAW_TEXT, decode_response
from .gateway import GatewayError, TransportGateway
from .outcome import Outcome, TransportFailure

logger = logging.getLogger(__name__)


class ServiceClient:
    """Issues one remote call at a time and always returns an Outcome.

    The live session id from ``context`` is attached to every request.
    Gateway failures become TransportFailure; nothing is retried here.
    """

    def __init__(self, gateway: TransportGateway, context: RunContext):
        self.gateway = gateway
        self.context = context

    async def call(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        shape: Any = RAW_TEXT,
        json_body: Any | None = None,
    ) -> Outcome[Any]:
        """Send a request and decode the response as ``shape``."""
        try:
            response = await self.gateway.send(
                method,
                path,
                json_body=json_body,
                headers=self.context.session_headers(),
            )
        except GatewayError as e:
            logger.warning("%s: transport failure: %s", operation, e)
            return TransportFailure(cause=str(e))

        logger.debug("%s -> %d %s", operation, response.status_code, response.body_text)
        outcome = decode_response(response, shape)
        if outcome.ok:
            logger.info("%s -> OK", operation)
        else:
            logger.warning("%s -> %s: %s", operation, outcome.kind, outcome.describe())
        return outcome
