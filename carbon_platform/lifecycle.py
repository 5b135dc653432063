"""
Lifecycle orchestrator for one Carbon run.

Sequence: probe the service, authenticate (resolving a session conflict at
most once), pick a job, open it, activate its first working set, request the
reports, then close the job and end the session. Whatever fails after the
session exists, the release states still owed are walked in order so that an
open job is always closed before the session is ended.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from contracts.v1.schemas import ServiceInfoResponse

from .config import DEFAULT_APP_ID, PANDAS_REPORT_NAME, TEXT_REPORT_NAME, ReportPlan
from .context import RunContext
from .gateway import TransportGateway
from .mappers import plan_to_gentab_request
from .models import AccountTree, Credential, Job, OpenJobHandle, Session
from .outcome import (
    Failure,
    LogicalFailure,
    Outcome,
    PreconditionViolation,
    ServiceError,
)
from .service_client import ServiceClient
from .services import JobController, ReportRequestor, SessionController
from .session_state_machine import (
    IllegalTransition,
    LifecycleState,
    can_transition,
    teardown_path,
)

logger = logging.getLogger(__name__)

S = LifecycleState

ConfirmFn = Callable[[str], bool]
SelectJobFn = Callable[[AccountTree], Optional[Job]]
StateObserver = Callable[[LifecycleState, "RunReport"], None]


class RunStatus(str, Enum):
    SUCCEEDED = "succeeded"
    ABSTAINED = "abstained"
    DECLINED = "declined"
    NO_JOBS = "no_jobs"
    FAILED = "failed"


@dataclass
class RunReport:
    """Everything a run did, for the top-level handler to present and exit on."""

    state: LifecycleState = S.START
    states: list[LifecycleState] = field(default_factory=lambda: [S.START])
    status: RunStatus = RunStatus.SUCCEEDED
    terminal_error: Optional[Failure] = None
    teardown: dict[str, Outcome[Any]] = field(default_factory=dict)
    service_info: Optional[ServiceInfoResponse] = None
    session: Optional[Session] = None
    account_tree: Optional[AccountTree] = None
    session_conflict: Optional[ServiceError] = None
    force_closed_count: Optional[int] = None
    selected_job: Optional[Job] = None
    working_sets: Optional[tuple[str, ...]] = None
    active_working_set: Optional[str] = None
    hierarchy: Any = None
    reports: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status in (RunStatus.SUCCEEDED, RunStatus.ABSTAINED)

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def advance(self, target: LifecycleState) -> None:
        if not can_transition(self.state, target):
            raise IllegalTransition(self.state, target)
        self.state = target
        self.states.append(target)

    def fail(self, error: Failure, status: RunStatus = RunStatus.FAILED) -> None:
        """Record a terminal error; the first one wins."""
        if self.terminal_error is None:
            self.terminal_error = error
            self.status = status


def _decline(prompt: str) -> bool:
    return False


def _first_job(tree: AccountTree) -> Optional[Job]:
    jobs = tree.jobs()
    return jobs[0] if jobs else None


class LifecycleOrchestrator:
    """Drives the controllers in order for a single run over one gateway."""

    def __init__(
        self,
        gateway: TransportGateway,
        *,
        credential: Credential,
        plan: ReportPlan,
        confirm: ConfirmFn = _decline,
        select_job: SelectJobFn = _first_job,
        on_state: Optional[StateObserver] = None,
        app_id: str | None = DEFAULT_APP_ID,
    ):
        self.context = RunContext()
        client = ServiceClient(gateway, self.context)
        self.sessions = SessionController(client, app_id=app_id)
        self.jobs = JobController(client)
        self.reports = ReportRequestor(client)
        self.credential = credential
        self.plan = plan
        self.confirm = confirm
        self.select_job = select_job
        self.on_state = on_state

    def _advance(self, report: RunReport, state: LifecycleState, *, releasing: bool = False) -> None:
        report.advance(state)
        logger.info("Lifecycle -> %s", state.value)
        if not self.on_state:
            return
        if not releasing:
            self.on_state(state, report)
            return
        # Release steps still owed must run whatever the observer does
        try:
            self.on_state(state, report)
        except Exception:
            logger.exception("State observer failed at %s", state.value)

    async def run(self) -> RunReport:
        report = RunReport()
        try:
            await self._acquire_and_work(report)
        finally:
            await self._teardown(report)
        return report

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    async def _acquire_and_work(self, report: RunReport) -> None:
        info = await self.sessions.probe_service_info()
        if not info.ok:
            report.fail(info)
            return
        report.service_info = info.value
        self._advance(report, S.SERVICE_PROBED)

        auth = await self._authenticate(report)
        if not auth.ok:
            if report.terminal_error is None:
                report.fail(auth)
            return
        report.session = auth.value
        report.account_tree = self.context.account_tree
        self._advance(report, S.AUTHENTICATED)

        tree = self.context.account_tree
        if tree is None or tree.job_count == 0:
            report.fail(
                LogicalFailure("authenticate", f"No jobs are assigned to account Name {auth.value.account_name}"),
                RunStatus.NO_JOBS,
            )
            return

        job = self.select_job(tree)
        if job is None:
            logger.info("No job selected")
            report.status = RunStatus.ABSTAINED
            return
        report.selected_job = job
        self._advance(report, S.JOB_SELECTED)

        opened = await self.jobs.open_job(job)
        if not opened.ok:
            report.fail(opened)
            return
        self._advance(report, S.JOB_OPENED)

        await self._work_with_job(report, opened.value)

    async def _authenticate(self, report: RunReport) -> Outcome[Session]:
        outcome = await self.sessions.authenticate(self.credential)
        if not (isinstance(outcome, ServiceError) and outcome.is_session_conflict):
            return outcome

        report.session_conflict = outcome
        prompt = f"{outcome.describe()}\nDo you want to close other sessions and continue?"
        if not self.confirm(prompt):
            logger.warning("Declined to close other sessions")
            report.fail(outcome, RunStatus.DECLINED)
            return outcome

        ids = self.context.conflicting_session_ids or ()
        closed = await self.sessions.force_close_sessions(ids)
        if not closed.ok:
            return closed
        report.force_closed_count = closed.value

        # Exactly one retry; a second conflict is terminal.
        return await self.sessions.authenticate(self.credential)

    async def _work_with_job(self, report: RunReport, handle: OpenJobHandle) -> None:
        listed = await self.jobs.list_working_sets(handle)
        if not listed.ok:
            report.fail(listed)
            return
        report.working_sets = listed.value
        self._advance(report, S.WORKING_SETS_LISTED)

        if not listed.value:
            logger.warning(
                "Job Id %s Name %s does not contain any variable trees",
                handle.job.id,
                handle.job.name,
            )
            self._advance(report, S.NO_WORKING_SETS)
        else:
            name = listed.value[0]
            activated = await self.jobs.set_active_working_set(handle, name)
            if not activated.ok:
                report.fail(activated)
                return
            if activated.value is not True:
                report.fail(
                    LogicalFailure("set_active_working_set", f"Set vartree '{name}' did not return success")
                )
                return
            report.active_working_set = name
            self._advance(report, S.WORKING_SET_ACTIVATED)

            nodes = await self.jobs.fetch_working_set_hierarchy(handle)
            if not nodes.ok:
                report.fail(nodes)
                return
            report.hierarchy = nodes.value
            self._advance(report, S.HIERARCHY_FETCHED)

        if await self._request_reports(report, handle):
            self._advance(report, S.REPORT_REQUESTED)

    async def _request_reports(self, report: RunReport, handle: OpenJobHandle) -> bool:
        plan = self.plan
        text = await self.reports.generate_text_report(
            handle, plan_to_gentab_request(plan, name=TEXT_REPORT_NAME), plan.output_format
        )
        if not text.ok:
            report.fail(text)
            return False
        report.reports[f"text/{plan.output_format}"] = text.value

        pandas_request = plan_to_gentab_request(plan, name=PANDAS_REPORT_NAME)
        for shape in plan.pandas_shapes:
            doc = await self.reports.generate_pandas_report(handle, pandas_request, shape)
            if not doc.ok:
                report.fail(doc)
                return False
            report.reports[f"pandas/{shape}"] = doc.value
        return True

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    async def _teardown(self, report: RunReport) -> None:
        """Walk the release states owed from the current state.

        An inner release failing never blocks the outer one; teardown
        failures only become the terminal error when nothing failed before.
        """
        for state in teardown_path(report.state):
            outcome: Optional[Outcome[Any]] = None
            if state is S.JOB_CLOSED:
                handle = self.context.open_job
                if handle is None:
                    outcome = PreconditionViolation("close_job", "no open job to close")
                else:
                    outcome = await self.jobs.close_job(handle)
                report.teardown["close_job"] = outcome
            elif state is S.SESSION_ENDED:
                outcome = await self.sessions.end_session()
                report.teardown["end_session"] = outcome

            if outcome is not None and not outcome.ok:
                logger.warning("Teardown %s failed: %s", state.value, outcome.describe())
                report.fail(outcome)
            self._advance(report, state, releasing=True)
