"""Session controller: service probe, authentication, conflict handling, logoff."""

from __future__ import annotations

import logging
from typing import Sequence

from contracts.v1.schemas import AuthenticateRequest, AuthenticateResponse, ServiceInfoResponse

from ..config import DEFAULT_APP_ID
from ..context import RunContext
from ..mappers import contract_to_account_tree, contract_to_session
from ..models import Credential, Session
from ..outcome import (
    Ok,
    Outcome,
    PreconditionViolation,
    ServiceError,
    conflict_session_ids,
)
from ..service_client import ServiceClient

logger = logging.getLogger(__name__)

SERVICE_INFO_PATH = "service/info"
AUTHENTICATE_PATH = "session/start/authenticate/name"
FORCE_CLOSE_PATH = "session/force/{ids}"
END_SESSION_PATH = "session/end"


class SessionController:
    """Owns the session slot for one run.

    A session conflict from ``authenticate`` is surfaced, never resolved here:
    the blocking ids are remembered on the context so that
    ``force_close_sessions`` becomes legal, and the caller decides.
    """

    def __init__(self, client: ServiceClient, *, app_id: str | None = DEFAULT_APP_ID):
        self.client = client
        self.app_id = app_id

    @property
    def context(self) -> RunContext:
        return self.client.context

    async def probe_service_info(self) -> Outcome[ServiceInfoResponse]:
        """Read-only health check made before any session exists."""
        return await self.client.call(
            "probe_service_info", "GET", SERVICE_INFO_PATH, shape=ServiceInfoResponse
        )

    async def authenticate(self, credential: Credential) -> Outcome[Session]:
        """Start a session by account name; on Ok the session header is live."""
        violation = self.context.require_no_session("authenticate")
        if violation:
            return violation

        request = AuthenticateRequest(
            name=credential.account_name,
            password=credential.password,
            skip_cache=True,
            app_id=self.app_id,
        )
        logger.info("Authenticating account %s", credential.account_name)
        outcome = await self.client.call(
            "authenticate",
            "POST",
            AUTHENTICATE_PATH,
            shape=AuthenticateResponse,
            json_body=request.model_dump(by_alias=True, exclude_none=True),
        )

        if isinstance(outcome, ServiceError):
            if outcome.is_session_conflict:
                self.context.conflicting_session_ids = conflict_session_ids(outcome)
                logger.warning(
                    "Account %s already holds %d live session(s)",
                    credential.account_name,
                    len(self.context.conflicting_session_ids),
                )
            return outcome
        if not outcome.ok:
            return outcome

        session = contract_to_session(outcome.value)
        tree = contract_to_account_tree(outcome.value)
        self.context.begin_session(session, tree)
        logger.info(
            "Session %s for account %s (%s customers, %s jobs)",
            session.session_id,
            session.account_name,
            len(tree.customers),
            tree.job_count,
        )
        return Ok(session)

    async def force_close_sessions(self, ids: Sequence[str]) -> Outcome[int]:
        """Administratively close foreign sessions reported by a conflict."""
        if self.context.conflicting_session_ids is None:
            return PreconditionViolation("force_close_sessions", "no session conflict was reported")
        ids = [i for i in ids if i]
        if not ids:
            return PreconditionViolation("force_close_sessions", "no session ids to close")

        outcome = await self.client.call(
            "force_close_sessions",
            "DELETE",
            FORCE_CLOSE_PATH.format(ids=",".join(ids)),
            shape=int,
        )
        if outcome.ok:
            self.context.conflicting_session_ids = None
            logger.info("Force closed %d sessions", outcome.value)
        return outcome

    async def end_session(self) -> Outcome[bool]:
        """Delete the live session. The open job must be released first."""
        violation = self.context.require_session("end_session")
        if violation:
            return violation
        if self.context.open_job is not None:
            return PreconditionViolation("end_session", "a job is still open")

        outcome = await self.client.call("end_session", "DELETE", END_SESSION_PATH, shape=bool)
        if outcome.ok:
            self.context.end_session()
        return outcome
