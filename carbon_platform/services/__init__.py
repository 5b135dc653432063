"""Remote controllers for the Carbon session/job/report lifecycle."""

from .job_service import JobController
from .report_service import ReportRequestor
from .session_service import SessionController

__all__ = [
    "JobController",
    "ReportRequestor",
    "SessionController",
]
