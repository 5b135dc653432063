"""Pydantic contracts for the v1 Carbon web service JSON API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _StrictModel(BaseModel):
    """Base model for request bodies; rejects unknown fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, alias_generator=to_camel)


class _LenientModel(BaseModel):
    """Base model for service responses; tolerates fields added server-side."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ServiceInfoResponse(_LenientModel):
    version: str
    host_machine: str


class ErrorResponse(_LenientModel):
    """Structured rejection body returned with non-200 statuses."""

    code: int
    message: str
    details: str | None = None
    data: Any | None = None


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class AuthenticateRequest(_StrictModel):
    name: str = Field(min_length=1)
    password: str
    skip_cache: bool = True
    app_id: str | None = None


class SessionJobContract(_LenientModel):
    id: str
    name: str
    display_name: str | None = None


class SessionCustContract(_LenientModel):
    id: str
    name: str
    display_name: str | None = None
    session_jobs: list[SessionJobContract] = Field(default_factory=list)


class AuthenticateResponse(_LenientModel):
    session_id: str = Field(min_length=1)
    id: str
    name: str
    roles: list[str] = Field(default_factory=list)
    session_custs: list[SessionCustContract] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Job
# ---------------------------------------------------------------------------

class OpenJobRequest(_StrictModel):
    customer_name: str = Field(min_length=1)
    job_name: str = Field(min_length=1)
    get_display_props: bool = True
    get_vartree_names: bool = True
    get_axis_tree_names: bool = True
    toc_type: int = 0
    get_drills: bool = True


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class SpecProps(_StrictModel):
    """Tabulation options sent as ``sProps``."""

    case_filter: str | None = None
    top_insert: str | None = None
    side_insert: str | None = None
    level: str | None = None
    init_as_missing: bool = True
    exclude_ne: bool = Field(default=True, alias="excludeNE")
    pad_hierarchics: bool = True
    arith_over_stats: bool = True


class GenTabRequest(_StrictModel):
    """Cross-tabulation request body, replayed verbatim for every output format."""

    name: str = Field(min_length=1)
    top: str = Field(min_length=1)
    side: str = Field(min_length=1)
    filter: str | None = None
    weight: str | None = None
    s_props: SpecProps = Field(default_factory=SpecProps)
    # Display properties have no fixed schema yet; passed through untouched.
    d_props: dict[str, Any] = Field(default_factory=dict)
