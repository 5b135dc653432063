"""Response envelope decoding: raw gateway responses to typed outcomes."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError

from contracts.v1.schemas import ErrorResponse

from .gateway import GatewayResponse
from .outcome import Ok, Outcome, ServiceError, TransportFailure

RAW_TEXT = None
"""Pass as ``shape`` to relay a 200 body as text without decoding."""


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def _strictness(shape: Any) -> bool | None:
    # Scalars and lists must arrive with their JSON type; models keep their own config
    return None if hasattr(shape, "model_validate") else True


def decode_response(response: GatewayResponse, shape: Any = RAW_TEXT) -> Outcome[Any]:
    """Translate a gateway response into an Outcome.

    - 200: decode ``shape``; a decode failure is a TransportFailure.
    - non-200 with a structured error body: ServiceError.
    - non-200 with anything else: TransportFailure carrying status and body.
    """
    status = response.status_code
    body = response.body_text

    if status == 200:
        if shape is RAW_TEXT:
            return Ok(body)
        try:
            return Ok(_adapter(shape).validate_json(body, strict=_strictness(shape)))
        except ValidationError as e:
            return TransportFailure(
                cause=f"Malformed payload: {e.error_count()} validation error(s)",
                status_code=status,
                body=body,
            )

    try:
        error = ErrorResponse.model_validate_json(body)
    except ValidationError:
        return TransportFailure(cause="Unexpected response", status_code=status, body=body)

    return ServiceError(
        code=error.code,
        message=error.message,
        detail=error.details,
        data=error.data,
        status_code=status,
    )
