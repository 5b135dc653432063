"""Tests for CLI command helpers."""

from contextlib import asynccontextmanager

import pytest

from carbon_platform.config import ENV_VARS
from carbon_platform.gateway import GatewayError
from carbon_platform.models import AccountTree, Customer, Job
import cli.commands as commands
from cli.commands import _job_selector, _settings_from_args, build_parser, cmd_info, cmd_run, main


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """No appsettings.json and no CARBON_* variables leak into a test."""
    monkeypatch.chdir(tmp_path)
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def use_gateway(monkeypatch):
    """Route open_gateway to a scripted gateway and record how it was opened."""
    opened = {}

    def _install(gateway):
        @asynccontextmanager
        async def _open(base_url, *, timeout_seconds):
            opened.update(base_url=base_url, timeout_seconds=timeout_seconds)
            yield gateway

        monkeypatch.setattr(commands, "open_gateway", _open)
        return opened

    return _install


def test_parser_run_options():
    args = build_parser().parse_args(
        ["run", "-u", "alice", "-p", "pw", "-t", "age", "-s", "region", "-w", "wgt",
         "--pandas-shape", "1", "--pandas-shape", "3", "--job", "Acme/Budget", "--yes"]
    )
    assert args.command == "run"
    assert args.user == "alice"
    assert args.pandas_shape == [1, 3]
    assert args.job == "Acme/Budget"
    assert args.yes is True


def test_parser_rejects_unknown_pandas_shape():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["run", "--pandas-shape", "4"])


def test_parser_requires_subcommand():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_settings_from_args_overrides_defaults():
    args = build_parser().parse_args(["run", "-b", "http://host/carbon", "-u", "alice", "-o", "tsv", "--no-pandas"])

    settings = _settings_from_args(args)

    assert settings.base_uri == "http://host/carbon"
    assert settings.user_name == "alice"
    assert settings.format == "tsv"
    assert settings.pandas_shapes == ()
    assert settings.top == "age"


def test_settings_from_args_env_fills_gaps(monkeypatch):
    monkeypatch.setenv("CARBON_USER_NAME", "bob")
    args = build_parser().parse_args(["run", "--pandas-shape", "2"])

    settings = _settings_from_args(args)

    assert settings.user_name == "bob"
    assert settings.pandas_shapes == (2,)


def test_job_selector_by_name(capsys):
    acme = Customer(id="C1", name="Acme")
    acme.jobs.append(Job(id="J1", name="Budget", customer=acme))
    tree = AccountTree(customers=[acme])

    assert _job_selector("Acme/Budget")(tree).id == "J1"
    assert _job_selector("Nope")(tree) is None
    assert "No job matches 'Nope'" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cmd_info_prints_version(use_gateway, fake_gateway, json_response, capsys):
    fake_gateway.add("GET", "service/info", json_response({"version": "9.1.0", "hostMachine": "carbon-01"}))
    opened = use_gateway(fake_gateway)
    args = build_parser().parse_args(["info", "-b", "http://host/carbon/", "--timeout", "5"])

    assert await cmd_info(args) == 0

    out = capsys.readouterr().out
    assert "version 9.1.0 on machine carbon-01" in out
    assert opened == {"base_url": "http://host/carbon/", "timeout_seconds": 5.0}


@pytest.mark.asyncio
async def test_cmd_info_unreachable(use_gateway, fake_gateway, capsys):
    fake_gateway.add("GET", "service/info", GatewayError("GET service/info failed: refused"))
    use_gateway(fake_gateway)
    args = build_parser().parse_args(["info"])

    assert await cmd_info(args) == 1
    assert "refused" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cmd_run_happy_path(use_gateway, scripted_service, capsys):
    use_gateway(scripted_service)
    args = build_parser().parse_args(["run", "--job", "Acme/Budget"])

    assert await cmd_run(args) == 0

    out = capsys.readouterr().out
    assert "Session Id S1 for account Id A100 Name guest" in out
    assert "Set vartree 'Main' as active -> True" in out
    assert "--- text/csv ---" in out
    assert "Job closed -> True" in out
    assert "End session -> True" in out
    assert "RUN SUCCEEDED" in out


@pytest.mark.asyncio
async def test_cmd_run_yes_resolves_conflict(use_gateway, scripted_service, error_response, json_response, capsys):
    scripted_service.routes[("POST", "session/start/authenticate/name")].insert(
        0, error_response(302, "Already logged on", None, ["X1"])
    )
    scripted_service.add("DELETE", "session/force/X1", json_response(1))
    use_gateway(scripted_service)
    args = build_parser().parse_args(["run", "--job", "Budget", "--yes"])

    assert await cmd_run(args) == 0
    assert "Force closed 1 sessions" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cmd_run_conflict_declined(
    use_gateway, scripted_service, error_response, monkeypatch, capsys
):
    scripted_service.routes[("POST", "session/start/authenticate/name")] = [
        error_response(302, "Already logged on", None, ["X1"])
    ]
    use_gateway(scripted_service)

    monkeypatch.setattr(commands, "confirm", lambda prompt: False)
    args = build_parser().parse_args(["run", "--job", "Budget"])

    assert await cmd_run(args) == 1

    out = capsys.readouterr().out
    assert "RUN DECLINED" in out
    assert "Code 302 - Already logged on" in out
    assert scripted_service.count("DELETE", "session/force/X1") == 0


@pytest.mark.asyncio
async def test_cmd_run_unknown_job_abstains(use_gateway, scripted_service, capsys):
    use_gateway(scripted_service)
    args = build_parser().parse_args(["run", "--job", "Missing"])

    assert await cmd_run(args) == 0
    assert scripted_service.routes_called()[-1] == "DELETE session/end"
    assert "RUN ABSTAINED" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cmd_run_bad_settings_file(capsys):
    args = build_parser().parse_args(["run", "--settings", "missing.json"])

    assert await cmd_run(args) == 1
    assert "Settings file not found" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_main_dispatches_info(use_gateway, fake_gateway, json_response):
    fake_gateway.add("GET", "service/info", json_response({"version": "9", "hostMachine": "m"}))
    use_gateway(fake_gateway)

    assert await main(["info"]) == 0
