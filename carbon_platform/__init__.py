"""Session-scoped orchestration client for the Carbon web service."""

__version__ = "1.0.0"

from .config import ClientSettings, ConfigError, ReportPlan, load_settings
from .context import RunContext
from .envelope import decode_response
from .gateway import GatewayError, GatewayResponse, HttpxGateway, TransportGateway, open_gateway
from .lifecycle import LifecycleOrchestrator, RunReport, RunStatus
from .models import AccountTree, Credential, Customer, Job, OpenJobHandle, Session
from .outcome import (
    LogicalFailure,
    Ok,
    Outcome,
    PreconditionViolation,
    ServiceError,
    TransportFailure,
)
from .service_client import ServiceClient
from .services import JobController, ReportRequestor, SessionController
from .session_state_machine import LifecycleState

__all__ = [
    "__version__",
    "AccountTree",
    "ClientSettings",
    "ConfigError",
    "Credential",
    "Customer",
    "GatewayError",
    "GatewayResponse",
    "HttpxGateway",
    "Job",
    "JobController",
    "LifecycleOrchestrator",
    "LifecycleState",
    "LogicalFailure",
    "Ok",
    "OpenJobHandle",
    "Outcome",
    "PreconditionViolation",
    "ReportPlan",
    "ReportRequestor",
    "RunContext",
    "RunReport",
    "RunStatus",
    "ServiceClient",
    "ServiceError",
    "Session",
    "SessionController",
    "TransportFailure",
    "TransportGateway",
    "decode_response",
    "load_settings",
    "open_gateway",
]
