"""Tagged results returned by every remote operation.

Controllers never raise for expected conditions. Each call resolves to one of
``Ok``, ``ServiceError``, ``TransportFailure``, ``PreconditionViolation`` or
``LogicalFailure``; only the lifecycle orchestrator decides which of them end
a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar, Union

from .config import SESSION_CONFLICT_CODE

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    ok: ClassVar[bool] = True
    kind: ClassVar[str] = "ok"

    def describe(self) -> str:
        return "OK"


@dataclass(frozen=True)
class ServiceError:
    """Structured rejection from the remote service."""

    code: int
    message: str
    detail: str | None = None
    data: Any = None
    status_code: int | None = None

    ok: ClassVar[bool] = False
    kind: ClassVar[str] = "service_error"

    @property
    def is_session_conflict(self) -> bool:
        return self.code == SESSION_CONFLICT_CODE

    def describe(self) -> str:
        text = f"Code {self.code} - {self.message}"
        if self.detail:
            text += f"\n{self.detail}"
        return text


@dataclass(frozen=True)
class TransportFailure:
    """Network failure, timeout, or a payload that could not be decoded."""

    cause: str
    status_code: int | None = None
    body: str | None = None

    ok: ClassVar[bool] = False
    kind: ClassVar[str] = "transport_failure"

    def describe(self) -> str:
        text = self.cause
        if self.status_code is not None:
            text = f"Status code {self.status_code}: {text}"
        if self.body:
            text += f"\n{self.body}"
        return text


@dataclass(frozen=True)
class PreconditionViolation:
    """A step was called without its required prior state; nothing was sent."""

    operation: str
    reason: str

    ok: ClassVar[bool] = False
    kind: ClassVar[str] = "precondition_violation"

    def describe(self) -> str:
        return f"{self.operation}: {self.reason}"


@dataclass(frozen=True)
class LogicalFailure:
    """The service answered OK but the payload itself reports failure."""

    operation: str
    message: str

    ok: ClassVar[bool] = False
    kind: ClassVar[str] = "logical_failure"

    def describe(self) -> str:
        return self.message


Failure = Union[ServiceError, TransportFailure, PreconditionViolation, LogicalFailure]
Outcome = Union[Ok[T], ServiceError, TransportFailure, PreconditionViolation, LogicalFailure]


def conflict_session_ids(error: ServiceError) -> tuple[str, ...]:
    """Return the blocking session ids carried by a session-conflict error."""
    if not error.is_session_conflict or not isinstance(error.data, list):
        return ()
    return tuple(str(item) for item in error.data if item is not None and str(item))
