"""Mapping helpers between v1 contracts and domain models."""

from __future__ import annotations

from contracts.v1.schemas import AuthenticateResponse, GenTabRequest, OpenJobRequest, SpecProps

from .config import ReportPlan
from .models import AccountTree, Customer, Job, Session


def contract_to_session(contract: AuthenticateResponse) -> Session:
    """Convert an authenticate response into a ``Session``."""
    return Session(
        session_id=contract.session_id,
        account_id=contract.id,
        account_name=contract.name,
        roles=frozenset(contract.roles),
    )


def contract_to_account_tree(contract: AuthenticateResponse) -> AccountTree:
    """Walk the customers and their jobs in service order."""
    customers = []
    for cust_contract in contract.session_custs:
        cust = Customer(
            id=cust_contract.id,
            name=cust_contract.name,
            display_name=cust_contract.display_name,
        )
        cust.jobs = [
            Job(id=j.id, name=j.name, display_name=j.display_name, customer=cust)
            for j in cust_contract.session_jobs
        ]
        customers.append(cust)
    return AccountTree(customers=customers)


def job_to_open_request(job: Job) -> OpenJobRequest:
    """Build a single-round-trip open request for ``job`` under its customer."""
    return OpenJobRequest(customer_name=job.customer_name, job_name=job.name)


def plan_to_gentab_request(plan: ReportPlan, *, name: str) -> GenTabRequest:
    """Build a tabulation request from a report plan."""
    return GenTabRequest(
        name=name,
        top=plan.top,
        side=plan.side,
        filter=plan.filter,
        weight=plan.weight,
        s_props=SpecProps(),
        d_props=dict(plan.display_props),
    )
