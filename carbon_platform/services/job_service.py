"""Job controller: open/close a job and select its active working set (vartree)."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from ..context import RunContext
from ..mappers import job_to_open_request
from ..models import Job, OpenJobHandle
from ..outcome import Ok, Outcome, PreconditionViolation
from ..service_client import ServiceClient

logger = logging.getLogger(__name__)

OPEN_JOB_PATH = "job/open"
LIST_VARTREES_PATH = "job/vartree/list"
SET_VARTREE_PATH = "job/vartree/{name}"
VARTREE_NODES_PATH = "job/vartree/nodes"
CLOSE_JOB_PATH = "job/close"


class JobController:
    """At most one job is open per session; every call checks that first."""

    def __init__(self, client: ServiceClient):
        self.client = client

    @property
    def context(self) -> RunContext:
        return self.client.context

    async def open_job(self, job: Job) -> Outcome[OpenJobHandle]:
        violation = self.context.require_session("open_job")
        if violation:
            return violation
        if self.context.open_job is not None:
            return PreconditionViolation(
                "open_job", f"job '{self.context.open_job.job.name}' is already open"
            )
        if not job.customer_name:
            return PreconditionViolation("open_job", f"job '{job.name}' has no owning customer")

        request = job_to_open_request(job)
        logger.info("Opening job %s/%s", request.customer_name, request.job_name)
        outcome = await self.client.call(
            "open_job",
            "POST",
            OPEN_JOB_PATH,
            shape=Any,
            json_body=request.model_dump(by_alias=True),
        )
        if not outcome.ok:
            return outcome

        handle = OpenJobHandle(job=job, metadata=outcome.value)
        self.context.open_job = handle
        return Ok(handle)

    async def list_working_sets(self, handle: OpenJobHandle) -> Outcome[tuple[str, ...]]:
        """List vartree names. An empty result is valid and means there are none."""
        violation = self.context.require_open_job("list_working_sets", handle)
        if violation:
            return violation

        outcome = await self.client.call(
            "list_working_sets", "GET", LIST_VARTREES_PATH, shape=list[str]
        )
        if not outcome.ok:
            return outcome
        handle.working_sets = tuple(outcome.value)
        return Ok(handle.working_sets)

    async def set_active_working_set(self, handle: OpenJobHandle, name: str) -> Outcome[bool]:
        """Ask the service to activate ``name``.

        The boolean payload is the service's verdict; Ok(False) is returned
        as-is and the active working set stays unset.
        """
        violation = self.context.require_open_job("set_active_working_set", handle)
        if violation:
            return violation
        if not name:
            return PreconditionViolation("set_active_working_set", "working set name is empty")
        if handle.working_sets is not None and name not in handle.working_sets:
            return PreconditionViolation(
                "set_active_working_set", f"'{name}' is not a working set of job '{handle.job.name}'"
            )

        outcome = await self.client.call(
            "set_active_working_set",
            "GET",
            SET_VARTREE_PATH.format(name=quote(name, safe="")),
            shape=bool,
        )
        if not outcome.ok:
            return outcome

        logger.info("Set vartree '%s' as active -> %s", name, outcome.value)
        if outcome.value:
            handle.active_working_set = name
        return outcome

    async def fetch_working_set_hierarchy(self, handle: OpenJobHandle) -> Outcome[Any]:
        """Return the active vartree as an uninterpreted node document."""
        violation = self.context.require_active_working_set("fetch_working_set_hierarchy", handle)
        if violation:
            return violation
        return await self.client.call(
            "fetch_working_set_hierarchy", "GET", VARTREE_NODES_PATH, shape=Any
        )

    async def close_job(self, handle: OpenJobHandle) -> Outcome[bool]:
        """Close the job. The local handle is released whatever the service answers."""
        violation = self.context.require_open_job("close_job", handle)
        if violation:
            return violation

        try:
            outcome = await self.client.call("close_job", "DELETE", CLOSE_JOB_PATH, shape=bool)
        finally:
            handle.closed = True
            handle.active_working_set = None
            self.context.open_job = None
        if outcome.ok:
            logger.info("Job closed -> %s", outcome.value)
        return outcome
