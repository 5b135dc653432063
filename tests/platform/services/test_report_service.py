"""Tests for the report requestor."""

import pytest

from contracts.v1.schemas import GenTabRequest
from carbon_platform.gateway import GatewayResponse
from carbon_platform.models import Credential
from carbon_platform.outcome import Ok, PreconditionViolation, ServiceError
from carbon_platform.services import JobController, ReportRequestor, SessionController


@pytest.fixture
def reports(service_client):
    return ReportRequestor(service_client)


@pytest.fixture
def gentab():
    return GenTabRequest(name="Report-1", top="age", side="region", weight="wgt")


async def _open_job(service_client, fake_gateway, json_response, auth_payload, working_sets=("Main",)):
    """Open Acme/Budget, list its working sets and activate the first one."""
    fake_gateway.add("POST", "session/start/authenticate/name", json_response(auth_payload))
    fake_gateway.add("POST", "job/open", json_response({}))
    fake_gateway.add("GET", "job/vartree/list", json_response(list(working_sets)))
    fake_gateway.add("GET", "job/vartree/Main", json_response(True))
    await SessionController(service_client).authenticate(Credential("guest", "guest"))
    jobs = JobController(service_client)
    handle = (await jobs.open_job(service_client.context.account_tree.jobs()[0])).value
    await jobs.list_working_sets(handle)
    if working_sets:
        await jobs.set_active_working_set(handle, working_sets[0])
    return handle


@pytest.mark.asyncio
async def test_text_report_requires_open_job(reports, service_client, fake_gateway, gentab, json_response, auth_payload):
    handle = await _open_job(service_client, fake_gateway, json_response, auth_payload)
    service_client.context.open_job = None

    outcome = await reports.generate_text_report(handle, gentab, "csv")

    assert isinstance(outcome, PreconditionViolation)
    assert fake_gateway.count("POST", "report/gentab/text/csv") == 0


@pytest.mark.asyncio
async def test_text_report_relays_body_verbatim(
    reports, service_client, fake_gateway, gentab, json_response, auth_payload
):
    handle = await _open_job(service_client, fake_gateway, json_response, auth_payload)
    fake_gateway.add("POST", "report/gentab/text/tsv", GatewayResponse(200, "age\tregion\n"))

    outcome = await reports.generate_text_report(handle, gentab, "tsv")

    assert outcome == Ok("age\tregion\n")
    call = fake_gateway.calls[-1]
    assert call.json_body == gentab.model_dump(by_alias=True)
    assert call.json_body["sProps"]["initAsMissing"] is True
    assert call.json_body["dProps"] == {}
    assert call.headers == {"x-session-id": "S1"}


@pytest.mark.asyncio
async def test_text_report_service_error(
    reports, service_client, fake_gateway, gentab, json_response, error_response, auth_payload
):
    handle = await _open_job(service_client, fake_gateway, json_response, auth_payload)
    fake_gateway.add("POST", "report/gentab/text/csv", error_response(500, "Unknown variable 'age'", status=500))

    outcome = await reports.generate_text_report(handle, gentab, "csv")

    assert isinstance(outcome, ServiceError)
    assert outcome.message == "Unknown variable 'age'"


@pytest.mark.asyncio
async def test_pandas_report_decodes_document(
    reports, service_client, fake_gateway, gentab, json_response, auth_payload
):
    handle = await _open_job(service_client, fake_gateway, json_response, auth_payload)
    fake_gateway.add("POST", "report/gentab/pandas/2", json_response({"columns": ["a"], "data": [[1]]}))

    outcome = await reports.generate_pandas_report(handle, gentab, 2)

    assert outcome == Ok({"columns": ["a"], "data": [[1]]})


@pytest.mark.asyncio
async def test_text_report_allowed_when_job_has_no_working_sets(
    reports, service_client, fake_gateway, gentab, json_response, auth_payload
):
    handle = await _open_job(service_client, fake_gateway, json_response, auth_payload, working_sets=())
    fake_gateway.add("POST", "report/gentab/text/csv", GatewayResponse(200, "x"))

    assert handle.active_working_set is None
    assert await reports.generate_text_report(handle, gentab, "csv") == Ok("x")


@pytest.mark.asyncio
async def test_report_refused_before_working_set_is_activated(
    reports, service_client, fake_gateway, gentab, json_response, auth_payload
):
    fake_gateway.add("POST", "session/start/authenticate/name", json_response(auth_payload))
    fake_gateway.add("POST", "job/open", json_response({}))
    fake_gateway.add("GET", "job/vartree/list", json_response(["Main"]))
    await SessionController(service_client).authenticate(Credential("guest", "guest"))
    jobs = JobController(service_client)
    handle = (await jobs.open_job(service_client.context.account_tree.jobs()[0])).value
    await jobs.list_working_sets(handle)

    text = await reports.generate_text_report(handle, gentab, "csv")
    pandas = await reports.generate_pandas_report(handle, gentab, 1)

    assert isinstance(text, PreconditionViolation)
    assert text.reason == "no active working set"
    assert isinstance(pandas, PreconditionViolation)
    assert not any(route.startswith("POST report/") for route in fake_gateway.routes_called())


@pytest.mark.asyncio
async def test_report_refused_before_working_sets_are_listed(
    reports, service_client, fake_gateway, gentab, json_response, auth_payload
):
    fake_gateway.add("POST", "session/start/authenticate/name", json_response(auth_payload))
    fake_gateway.add("POST", "job/open", json_response({}))
    await SessionController(service_client).authenticate(Credential("guest", "guest"))
    handle = (await JobController(service_client).open_job(service_client.context.account_tree.jobs()[0])).value

    outcome = await reports.generate_text_report(handle, gentab, "csv")

    assert isinstance(outcome, PreconditionViolation)
    assert outcome.reason == "working sets have not been listed"
    assert fake_gateway.count("POST", "report/gentab/text/csv") == 0
