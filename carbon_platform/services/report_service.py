"""Report requestor: cross-tabulation requests against the open job."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from contracts.v1.schemas import GenTabRequest

from ..context import RunContext
from ..models import OpenJobHandle
from ..outcome import Outcome, PreconditionViolation
from ..service_client import ServiceClient

GENTAB_TEXT_PATH = "report/gentab/text/{format}"
GENTAB_PANDAS_PATH = "report/gentab/pandas/{shape}"


class ReportRequestor:
    """Stateless: requests are built per call and never touch lifecycle state.

    The working sets must have been listed and one activated. A job that has
    no working sets at all may still be reported on, because the service
    accepts that.
    """

    def __init__(self, client: ServiceClient):
        self.client = client

    @property
    def context(self) -> RunContext:
        return self.client.context

    async def generate_text_report(
        self, handle: OpenJobHandle, request: GenTabRequest, output_format: str
    ) -> Outcome[str]:
        """Request a text-rendered report (csv, tsv, ...) and relay the body."""
        violation = self.context.require_report_ready("generate_text_report", handle)
        if violation:
            return violation
        if not output_format:
            return PreconditionViolation("generate_text_report", "output format is empty")

        return await self.client.call(
            "generate_text_report",
            "POST",
            GENTAB_TEXT_PATH.format(format=quote(output_format, safe="")),
            json_body=request.model_dump(by_alias=True),
        )

    async def generate_pandas_report(
        self, handle: OpenJobHandle, request: GenTabRequest, shape: int
    ) -> Outcome[Any]:
        """Request the report as a pandas-shaped JSON document."""
        violation = self.context.require_report_ready("generate_pandas_report", handle)
        if violation:
            return violation

        return await self.client.call(
            "generate_pandas_report",
            "POST",
            GENTAB_PANDAS_PATH.format(shape=int(shape)),
            shape=Any,
            json_body=request.model_dump(by_alias=True),
        )
