"""
Console presentation for the Carbon client: banners, prompts and summaries.
"""

import json
from typing import Any, Callable, Optional

from carbon_platform.lifecycle import RunReport
from carbon_platform.models import AccountTree, Job
from carbon_platform.session_state_machine import LifecycleState

InputFn = Callable[[str], str]

SECTION_TITLES = {
    LifecycleState.SERVICE_PROBED: "Service Info",
    LifecycleState.AUTHENTICATED: "Authenticate by account Name",
    LifecycleState.JOB_OPENED: "Open job",
    LifecycleState.WORKING_SETS_LISTED: "List Variable Tree Names",
    LifecycleState.WORKING_SET_ACTIVATED: "Set active vartree",
    LifecycleState.HIERARCHY_FETCHED: "Get vartree as nodes",
    LifecycleState.REPORT_REQUESTED: "Generate Cross-tabulation Reports",
    LifecycleState.JOB_CLOSED: "Close Job",
    LifecycleState.SESSION_ENDED: "End session",
}


def print_section(title: str):
    """Print a boxed section title."""
    bar = "─" * (len(title) + 4)
    print("┌" + bar + "┐")
    print("│  " + title + "  │")
    print("└" + bar + "┘")


def _dump(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False)


def _outcome_text(outcome) -> str:
    return str(outcome.value) if outcome.ok else outcome.describe()


def print_account(report: RunReport):
    """Print the session identity and the customer/job tree."""
    session = report.session
    if session is None:
        return
    print(f"Session Id {session.session_id} for account Id {session.account_id} Name {session.account_name}")
    print(f"Roles -> [{','.join(sorted(session.roles))}]")
    tree = report.account_tree or AccountTree()
    for cust in tree.customers:
        print(f"CUST |  {cust.id} {cust.label}")
        for job in cust.jobs:
            print(f"JOB  |  |  {job.id} {job.label}")


def print_state(state: LifecycleState, report: RunReport, *, verbose: bool = False):
    """Observer callback: print what the run just reached."""
    title = SECTION_TITLES.get(state)
    if title:
        print_section(title)

    if state is LifecycleState.SERVICE_PROBED and report.service_info:
        info = report.service_info
        print(f"Contacted Carbon web service version {info.version} on machine {info.host_machine}")
    elif state is LifecycleState.AUTHENTICATED:
        if report.force_closed_count is not None:
            print(f"Force closed {report.force_closed_count} sessions")
        print_account(report)
    elif state is LifecycleState.JOB_SELECTED and report.selected_job:
        job = report.selected_job
        print(f"Selected {job.customer.label if job.customer else '?'} - {job.label}")
    elif state is LifecycleState.WORKING_SETS_LISTED:
        print(f"Vartrees -> [{','.join(report.working_sets or ())}]")
    elif state is LifecycleState.NO_WORKING_SETS and report.selected_job:
        job = report.selected_job
        print(f"  ! Job Id {job.id} Name {job.name} does not contain any variable trees")
    elif state is LifecycleState.WORKING_SET_ACTIVATED:
        print(f"Set vartree '{report.active_working_set}' as active -> True")
    elif state is LifecycleState.HIERARCHY_FETCHED and verbose:
        print(_dump(report.hierarchy))
    elif state is LifecycleState.REPORT_REQUESTED:
        for key, body in report.reports.items():
            print(f"\n--- {key} ---")
            print(_dump(body))
    elif state is LifecycleState.JOB_CLOSED:
        print(f"Job closed -> {_outcome_text(report.teardown['close_job'])}")
    elif state is LifecycleState.SESSION_ENDED:
        print(f"End session -> {_outcome_text(report.teardown['end_session'])}")


def print_job_menu(jobs: list[Job]):
    for seq, job in enumerate(jobs, 1):
        cust_label = job.customer.label if job.customer else "?"
        print(f"{seq:>2} - {cust_label} - {job.label}")
    print(" X - Exit")


def ask_for_job(tree: AccountTree, input_fn: InputFn = input) -> Optional[Job]:
    """Prompt for a job number until a valid one (or X to abstain) is entered."""
    print_section("Select job")
    jobs = tree.jobs()
    print_job_menu(jobs)
    while True:
        try:
            choice = input_fn("Enter job number to open: ").strip()
        except (EOFError, KeyboardInterrupt):
            return None
        if choice.lower() == "x":
            return None
        try:
            index = int(choice) - 1
        except ValueError:
            continue
        if 0 <= index < len(jobs):
            return jobs[index]


def confirm(prompt: str, input_fn: InputFn = input) -> bool:
    """Ask a yes/no question; anything but 'y' declines."""
    print(f"\n{prompt} (y/n)")
    try:
        answer = input_fn("  > ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        return False
    return answer == "y"


def print_run_summary(report: RunReport):
    """Print the final verdict, including the verbatim terminal error."""
    print("\n" + "=" * 60)
    print(f"RUN {report.status.value.upper()}")
    print("=" * 60)
    if report.terminal_error is not None:
        print(f"Error: {report.terminal_error.describe()}")
    for name, outcome in report.teardown.items():
        if not outcome.ok:
            print(f"  ! {name}: {outcome.describe()}")
