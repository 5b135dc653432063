"""Lifecycle states of one Carbon run and the transitions between them."""

from __future__ import annotations

from enum import Enum


class LifecycleState(str, Enum):
    START = "start"
    SERVICE_PROBED = "service_probed"
    AUTHENTICATED = "authenticated"
    JOB_SELECTED = "job_selected"
    JOB_OPENED = "job_opened"
    WORKING_SETS_LISTED = "working_sets_listed"
    NO_WORKING_SETS = "no_working_sets"
    WORKING_SET_ACTIVATED = "working_set_activated"
    HIERARCHY_FETCHED = "hierarchy_fetched"
    REPORT_REQUESTED = "report_requested"
    JOB_CLOSED = "job_closed"
    SESSION_ENDED = "session_ended"
    END = "end"


S = LifecycleState

# Failure at any state with an open job routes to JOB_CLOSED; with only a
# session, to SESSION_ENDED; with nothing acquired, straight to END.
TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    S.START: frozenset({S.SERVICE_PROBED, S.END}),
    S.SERVICE_PROBED: frozenset({S.AUTHENTICATED, S.END}),
    S.AUTHENTICATED: frozenset({S.JOB_SELECTED, S.SESSION_ENDED}),
    S.JOB_SELECTED: frozenset({S.JOB_OPENED, S.SESSION_ENDED}),
    S.JOB_OPENED: frozenset({S.WORKING_SETS_LISTED, S.JOB_CLOSED}),
    S.WORKING_SETS_LISTED: frozenset({S.WORKING_SET_ACTIVATED, S.NO_WORKING_SETS, S.JOB_CLOSED}),
    S.WORKING_SET_ACTIVATED: frozenset({S.HIERARCHY_FETCHED, S.JOB_CLOSED}),
    S.HIERARCHY_FETCHED: frozenset({S.REPORT_REQUESTED, S.JOB_CLOSED}),
    S.NO_WORKING_SETS: frozenset({S.REPORT_REQUESTED, S.JOB_CLOSED}),
    S.REPORT_REQUESTED: frozenset({S.JOB_CLOSED}),
    S.JOB_CLOSED: frozenset({S.SESSION_ENDED}),
    S.SESSION_ENDED: frozenset({S.END}),
    S.END: frozenset(),
}

# States in which the account's session slot is held by this run
SESSION_HELD = frozenset({
    S.AUTHENTICATED, S.JOB_SELECTED, S.JOB_OPENED, S.WORKING_SETS_LISTED,
    S.NO_WORKING_SETS, S.WORKING_SET_ACTIVATED, S.HIERARCHY_FETCHED,
    S.REPORT_REQUESTED, S.JOB_CLOSED,
})

# States in which a job is open server-side
JOB_HELD = frozenset({
    S.JOB_OPENED, S.WORKING_SETS_LISTED, S.NO_WORKING_SETS,
    S.WORKING_SET_ACTIVATED, S.HIERARCHY_FETCHED, S.REPORT_REQUESTED,
})


class IllegalTransition(RuntimeError):
    """Raised when the orchestrator tries to skip or reorder lifecycle states."""

    def __init__(self, current: LifecycleState, target: LifecycleState):
        super().__init__(f"Illegal lifecycle transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


def can_transition(current: LifecycleState, target: LifecycleState) -> bool:
    """Return True when ``target`` may directly follow ``current``."""
    return target in TRANSITIONS[current]


def holds_session(state: LifecycleState) -> bool:
    return state in SESSION_HELD


def holds_job(state: LifecycleState) -> bool:
    return state in JOB_HELD


def teardown_path(state: LifecycleState) -> list[LifecycleState]:
    """Return the release states still owed from ``state`` down to END."""
    path: list[LifecycleState] = []
    if holds_job(state):
        path.append(S.JOB_CLOSED)
    if holds_session(state) or path:
        path.append(S.SESSION_ENDED)
    if state is not S.END:
        path.append(S.END)
    return path
