"""
Domain models for an authenticated Carbon run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Credential:
    """Account name/password pair supplied once at startup."""
    account_name: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Session:
    """Server-granted authorization for one run."""
    session_id: str
    account_id: str
    account_name: str
    roles: frozenset[str] = frozenset()


@dataclass
class Customer:
    id: str
    name: str
    display_name: Optional[str] = None
    jobs: list[Job] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.display_name or self.name


@dataclass(frozen=True)
class Job:
    id: str
    name: str
    display_name: Optional[str] = None
    # Back-reference to the owning customer; excluded from repr/eq to avoid cycles
    customer: Optional[Customer] = field(default=None, repr=False, compare=False)

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @property
    def customer_name(self) -> str:
        return self.customer.name if self.customer else ""


@dataclass
class AccountTree:
    """Customers and jobs the authenticated account may access, in service order."""
    customers: list[Customer] = field(default_factory=list)

    def jobs(self) -> list[Job]:
        """Return every job flattened in customer order."""
        return [job for cust in self.customers for job in cust.jobs]

    @property
    def job_count(self) -> int:
        return sum(len(cust.jobs) for cust in self.customers)

    def find_job(self, query: str) -> Optional[Job]:
        """Find a job by name or display name, optionally qualified as ``customer/job``."""
        query = (query or "").strip()
        if not query:
            return None
        cust_part, _, job_part = query.rpartition("/")
        for job in self.jobs():
            if job_part not in (job.name, job.display_name):
                continue
            if cust_part and job.customer and cust_part not in (job.customer.name, job.customer.display_name):
                continue
            return job
        return None


@dataclass
class OpenJobHandle:
    """A job opened server-side for the current session.

    ``working_sets`` stays None until the vartree names are listed, and
    ``active_working_set`` stays None until the service confirms activation.
    """
    job: Job
    metadata: Any = None
    working_sets: Optional[tuple[str, ...]] = None
    active_working_set: Optional[str] = None
    closed: bool = False
