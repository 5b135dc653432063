"""
Shared fixtures for Carbon client tests.
"""

import json
from dataclasses import dataclass, field
from typing import Any

import pytest

from carbon_platform.context import RunContext
from carbon_platform.gateway import GatewayResponse
from carbon_platform.service_client import ServiceClient


@dataclass
class RecordedCall:
    method: str
    path: str
    json_body: Any
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def route(self) -> str:
        return f"{self.method} {self.path}"


class FakeGateway:
    """Scripted TransportGateway that records every request.

    Responses queued for a route are consumed in order; the last one is
    repeated. Queue an exception instance to have ``send`` raise it.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list] = {}
        self.calls: list[RecordedCall] = []

    def add(self, method: str, path: str, *responses):
        self.routes.setdefault((method, path), []).extend(responses)
        return self

    async def send(self, method, path, json_body=None, headers=None):
        self.calls.append(RecordedCall(method, path, json_body, dict(headers or {})))
        queue = self.routes.get((method, path))
        if not queue:
            raise AssertionError(f"Unexpected request {method} {path}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def routes_called(self) -> list[str]:
        return [c.route for c in self.calls]

    def count(self, method: str, path: str) -> int:
        return sum(1 for c in self.calls if c.method == method and c.path == path)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def json_response():
    """Build a GatewayResponse with a JSON body.

    Usage:
        gateway.add("GET", "service/info", json_response({"version": "9"}))
        gateway.add("DELETE", "job/close", json_response(False, status=500))
    """
    def _make(payload, status: int = 200):
        return GatewayResponse(status_code=status, body_text=json.dumps(payload))
    return _make


@pytest.fixture
def error_response():
    """Build a structured service error response."""
    def _make(code: int, message: str, details: str | None = None, data=None, status: int = 400):
        body = {"code": code, "message": message, "details": details, "data": data}
        return GatewayResponse(status_code=status, body_text=json.dumps(body))
    return _make


@pytest.fixture
def auth_payload():
    """Authenticate response: account guest, one customer Acme with job Budget."""
    return {
        "sessionId": "S1",
        "id": "A100",
        "name": "guest",
        "roles": ["viewer"],
        "sessionCusts": [
            {
                "id": "C1",
                "name": "Acme",
                "displayName": None,
                "sessionJobs": [
                    {"id": "J1", "name": "Budget", "displayName": None},
                ],
            }
        ],
    }


@pytest.fixture
def run_context():
    return RunContext()


@pytest.fixture
def service_client(fake_gateway, run_context):
    return ServiceClient(fake_gateway, run_context)


@pytest.fixture
def scripted_service(fake_gateway, json_response, auth_payload):
    """A gateway scripted for a complete happy-path run against job Acme/Budget."""
    gw = fake_gateway
    gw.add("GET", "service/info", json_response({"version": "9.1.0", "hostMachine": "carbon-01"}))
    gw.add("POST", "session/start/authenticate/name", json_response(auth_payload))
    gw.add("POST", "job/open", json_response({"name": "Budget", "vartreeNames": ["Main"]}))
    gw.add("GET", "job/vartree/list", json_response(["Main"]))
    gw.add("GET", "job/vartree/Main", json_response(True))
    gw.add("GET", "job/vartree/nodes", json_response([{"type": "Folder", "name": "Main"}]))
    gw.add("POST", "report/gentab/text/csv", GatewayResponse(200, "age,region\n1,2\n"))
    for shape in (1, 2, 3):
        gw.add("POST", f"report/gentab/pandas/{shape}", json_response({"shape": shape}))
    gw.add("DELETE", "job/close", json_response(True))
    gw.add("DELETE", "session/end", json_response(True))
    return gw
