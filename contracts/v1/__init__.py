"""v1 contract schemas for the Carbon web service."""

__version__ = "1.0.0"

from .schemas import (
    AuthenticateRequest,
    AuthenticateResponse,
    ErrorResponse,
    GenTabRequest,
    OpenJobRequest,
    ServiceInfoResponse,
    SessionCustContract,
    SessionJobContract,
    SpecProps,
)

__all__ = [
    "__version__",
    "AuthenticateRequest",
    "AuthenticateResponse",
    "ErrorResponse",
    "GenTabRequest",
    "OpenJobRequest",
    "ServiceInfoResponse",
    "SessionCustContract",
    "SessionJobContract",
    "SpecProps",
]
