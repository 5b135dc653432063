"""Per-run state shared by the controllers.

One ``RunContext`` is created per orchestration run and passed explicitly to
every controller. It holds the live session, the account tree, the open job
handle and any pending session conflict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import SESSION_HEADER_KEY
from .models import AccountTree, OpenJobHandle, Session
from .outcome import PreconditionViolation


@dataclass
class RunContext:
    session: Optional[Session] = None
    account_tree: Optional[AccountTree] = None
    open_job: Optional[OpenJobHandle] = None
    # Blocking session ids from the last session-conflict rejection
    conflicting_session_ids: Optional[tuple[str, ...]] = None

    def session_headers(self) -> dict[str, str]:
        if self.session is None:
            return {}
        return {SESSION_HEADER_KEY: self.session.session_id}

    def begin_session(self, session: Session, account_tree: AccountTree) -> None:
        self.session = session
        self.account_tree = account_tree
        self.conflicting_session_ids = None

    def end_session(self) -> None:
        self.session = None
        self.account_tree = None
        self.open_job = None

    def require_session(self, operation: str) -> Optional[PreconditionViolation]:
        if self.session is None:
            return PreconditionViolation(operation, "no live session")
        return None

    def require_no_session(self, operation: str) -> Optional[PreconditionViolation]:
        if self.session is not None:
            return PreconditionViolation(operation, "a session is already live")
        return None

    def require_open_job(self, operation: str, handle: OpenJobHandle) -> Optional[PreconditionViolation]:
        missing = self.require_session(operation)
        if missing:
            return missing
        if handle.closed or self.open_job is not handle:
            return PreconditionViolation(operation, f"job '{handle.job.name}' is not open")
        return None

    def require_active_working_set(
        self, operation: str, handle: OpenJobHandle
    ) -> Optional[PreconditionViolation]:
        missing = self.require_open_job(operation, handle)
        if missing:
            return missing
        if not handle.active_working_set:
            return PreconditionViolation(operation, "no active working set")
        return None

    def require_report_ready(self, operation: str, handle: OpenJobHandle) -> Optional[PreconditionViolation]:
        """Reports need the working sets listed and, when there are any, one activated."""
        missing = self.require_open_job(operation, handle)
        if missing:
            return missing
        if handle.working_sets is None:
            return PreconditionViolation(operation, "working sets have not been listed")
        if handle.working_sets and not handle.active_working_set:
            return PreconditionViolation(operation, "no active working set")
        return None
