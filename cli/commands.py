"""
CLI subcommand implementations for the Carbon client.

Subcommands::

    carbon-client info [-b URI]
    carbon-client run  [-b URI] [-u USER] [-p PASS] [-t TOP] [-s SIDE]
                       [-f FILTER] [-w WEIGHT] [-o FORMAT] [--job NAME] [--yes]
"""

import argparse
import asyncio
import logging
import sys
from functools import partial
from pathlib import Path

from dotenv import load_dotenv

from carbon_platform.config import ClientSettings, ConfigError, load_settings
from carbon_platform.context import RunContext
from carbon_platform.gateway import open_gateway
from carbon_platform.lifecycle import LifecycleOrchestrator, RunReport
from carbon_platform.models import AccountTree, Job
from carbon_platform.service_client import ServiceClient
from carbon_platform.services import SessionController

from .interface import ask_for_job, confirm, print_run_summary, print_section, print_state

logger = logging.getLogger(__name__)


def _settings_from_args(args) -> ClientSettings:
    overrides = {
        "base_uri": args.base_uri,
        "timeout_seconds": args.timeout,
    }
    if args.command == "run":
        overrides.update(
            user_name=args.user,
            password=args.password,
            top=args.top,
            side=args.side,
            filter=args.filter,
            weight=args.weight,
            format=args.format,
            app_id=args.app_id,
        )
        if args.no_pandas:
            overrides["pandas_shapes"] = ()
        elif args.pandas_shape:
            overrides["pandas_shapes"] = args.pandas_shape
    settings_path = Path(args.settings) if args.settings else None
    return load_settings(settings_path, overrides)


def _job_selector(job_query: str | None):
    """Pick a job by name when given, else ask interactively."""
    if not job_query:
        return ask_for_job

    def _select(tree: AccountTree) -> Job | None:
        job = tree.find_job(job_query)
        if job is None:
            print(f"Error: No job matches '{job_query}'")
        return job

    return _select


def _conflict_policy(assume_yes: bool):
    if not assume_yes:
        return confirm

    def _accept(prompt: str) -> bool:
        print(f"\n{prompt} (y/n)\n  > y (--yes)")
        return True

    return _accept


# ---------------------------------------------------------------------------
# Subcommand: info
# ---------------------------------------------------------------------------

async def cmd_info(args) -> int:
    """Probe the service and print its version."""
    try:
        settings = _settings_from_args(args)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    print_section("Service Info")
    print(f"Attempt to contact service at {settings.base_uri}")
    async with open_gateway(settings.base_uri, timeout_seconds=settings.timeout_seconds) as gateway:
        sessions = SessionController(ServiceClient(gateway, RunContext()))
        outcome = await sessions.probe_service_info()

    if not outcome.ok:
        print(f"Error: {outcome.describe()}")
        return 1
    info = outcome.value
    print(f"Contacted Carbon web service version {info.version} on machine {info.host_machine}")
    return 0


# ---------------------------------------------------------------------------
# Subcommand: run
# ---------------------------------------------------------------------------

async def cmd_run(args) -> int:
    """Run the full session/job/report lifecycle once."""
    try:
        settings = _settings_from_args(args)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    logger.debug("Resolved settings: %s", settings)
    print(f"Attempt to contact service at {settings.base_uri}")
    async with open_gateway(settings.base_uri, timeout_seconds=settings.timeout_seconds) as gateway:
        orchestrator = LifecycleOrchestrator(
            gateway,
            credential=settings.credential(),
            plan=settings.report_plan(),
            confirm=_conflict_policy(args.yes),
            select_job=_job_selector(args.job),
            on_state=partial(print_state, verbose=args.verbose),
            app_id=settings.app_id,
        )
        report: RunReport = await orchestrator.run()

    print_run_summary(report)
    return report.exit_code


def _add_connection_args(parser: argparse.ArgumentParser):
    parser.add_argument("-b", "--base-uri", help="Service base URI (or set CARBON_BASE_URI)")
    parser.add_argument("--settings", help="Path to an appsettings.json style file")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and full payloads")


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="carbon-client",
        description="Drive a Carbon web service session: authenticate, open a job, tabulate",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- info ---
    p_info = subparsers.add_parser("info", help="Check that the service responds")
    _add_connection_args(p_info)

    # --- run ---
    p_run = subparsers.add_parser("run", help="Run the full session lifecycle")
    _add_connection_args(p_run)
    p_run.add_argument("-u", "--user", help="Account name (or set CARBON_USER_NAME)")
    p_run.add_argument("-p", "--password", help="Account password (or set CARBON_PASSWORD)")
    p_run.add_argument("-t", "--top", help="Top (column) variable")
    p_run.add_argument("-s", "--side", help="Side (row) variable")
    p_run.add_argument("-f", "--filter", help="Case filter expression")
    p_run.add_argument("-w", "--weight", help="Weight variable")
    p_run.add_argument("-o", "--format", help="Text report format (default: csv)")
    p_run.add_argument("--app-id", help="Application identifier sent when authenticating")
    p_run.add_argument("--job", help="Job to open, by name or customer/job (skips the prompt)")
    p_run.add_argument("--yes", action="store_true", help="Close other sessions without asking")
    p_run.add_argument(
        "--pandas-shape", type=int, action="append", choices=[1, 2, 3],
        help="Pandas report shape to request (repeatable, default: 1 2 3)",
    )
    p_run.add_argument("--no-pandas", action="store_true", help="Skip the pandas-shaped reports")

    return parser


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI; returns the process exit code."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "info":
        return await cmd_info(args)
    return await cmd_run(args)


def run() -> None:
    """Console-script entry point."""
    sys.exit(asyncio.run(main()))
