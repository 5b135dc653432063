"""
Configuration constants and settings resolution for the Carbon client.

Settings are layered: built-in defaults, then an optional JSON settings file
(``appsettings.json`` style keys), then ``CARBON_*`` environment variables,
then explicit overrides (normally parsed from the command line).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from .models import Credential

logger = logging.getLogger(__name__)

# Header carrying the opaque session token on every call after authenticate
SESSION_HEADER_KEY = "x-session-id"

# Error code the service returns when the account already holds live sessions
SESSION_CONFLICT_CODE = 302

DEFAULT_BASE_URI = "https://rcsapps.azurewebsites.net/carbon/"
DEFAULT_APP_ID = "UnitTests"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_OUTPUT_FORMAT = "csv"
DEFAULT_PANDAS_SHAPES = (1, 2, 3)

TEXT_REPORT_NAME = "Report-1"
PANDAS_REPORT_NAME = "Report-2"

SETTINGS_FILENAME = "appsettings.json"

# Settings-file keys, keyed by ClientSettings field name
SETTINGS_FILE_KEYS = {
    "base_uri": "BaseUri",
    "user_name": "UserName",
    "password": "Password",
    "top": "Top",
    "side": "Side",
    "filter": "Filter",
    "weight": "Weight",
    "format": "Format",
    "app_id": "AppId",
    "timeout_seconds": "TimeoutSeconds",
}

# Environment variable names, keyed by ClientSettings field name
ENV_VARS = {
    "base_uri": "CARBON_BASE_URI",
    "user_name": "CARBON_USER_NAME",
    "password": "CARBON_PASSWORD",
    "top": "CARBON_TOP",
    "side": "CARBON_SIDE",
    "filter": "CARBON_FILTER",
    "weight": "CARBON_WEIGHT",
    "format": "CARBON_FORMAT",
    "app_id": "CARBON_APP_ID",
    "timeout_seconds": "CARBON_TIMEOUT_SECONDS",
}

_OPTIONAL_TEXT = {"filter", "weight"}


class ConfigError(Exception):
    """Raised when settings cannot be loaded or are unusable."""


@dataclass(frozen=True)
class ReportPlan:
    """What to tabulate once a job is open."""

    top: str
    side: str
    filter: str | None = None
    weight: str | None = None
    output_format: str = DEFAULT_OUTPUT_FORMAT
    pandas_shapes: tuple[int, ...] = DEFAULT_PANDAS_SHAPES
    display_props: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ClientSettings:
    base_uri: str = DEFAULT_BASE_URI
    user_name: str = "guest"
    password: str = field(default="guest", repr=False)
    top: str = "age"
    side: str = "region"
    filter: str | None = None
    weight: str | None = None
    format: str = DEFAULT_OUTPUT_FORMAT
    app_id: str | None = DEFAULT_APP_ID
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    pandas_shapes: tuple[int, ...] = DEFAULT_PANDAS_SHAPES

    def credential(self) -> Credential:
        return Credential(account_name=self.user_name, password=self.password)

    def report_plan(self) -> ReportPlan:
        return ReportPlan(
            top=self.top,
            side=self.side,
            filter=self.filter,
            weight=self.weight,
            output_format=self.format,
            pandas_shapes=self.pandas_shapes,
        )


def _normalize(name: str, value: Any) -> Any:
    if name == "timeout_seconds":
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            seconds = 0.0
        if seconds > 0:
            return seconds
        logger.warning(
            "Invalid timeout_seconds %r; using default %s", value, DEFAULT_TIMEOUT_SECONDS
        )
        return DEFAULT_TIMEOUT_SECONDS
    if name == "pandas_shapes":
        return tuple(int(v) for v in value)
    if isinstance(value, str):
        value = value.strip()
        if name in _OPTIONAL_TEXT and not value:
            return None
    return value


def load_settings_file(path: Path) -> dict[str, Any]:
    """Read an ``appsettings.json`` style file into ClientSettings field values."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read settings file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Settings file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a JSON object")

    values: dict[str, Any] = {}
    for name, key in SETTINGS_FILE_KEYS.items():
        if key in data and data[key] is not None:
            values[name] = data[key]
    return values


def settings_from_env(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect ClientSettings field values from ``CARBON_*`` environment variables."""
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for name, var in ENV_VARS.items():
        raw = env.get(var)
        if raw is not None and raw.strip():
            values[name] = raw
    return values


def load_settings(
    settings_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    environ: dict[str, str] | None = None,
) -> ClientSettings:
    """Resolve ClientSettings from defaults, settings file, environment and overrides.

    A missing default ``appsettings.json`` is fine; an explicitly requested
    file that does not exist is a ConfigError.
    """
    layered: dict[str, Any] = {}

    if settings_path is not None:
        if not settings_path.exists():
            raise ConfigError(f"Settings file not found: {settings_path}")
        layered.update(load_settings_file(settings_path))
    elif Path(SETTINGS_FILENAME).exists():
        layered.update(load_settings_file(Path(SETTINGS_FILENAME)))

    layered.update(settings_from_env(environ))
    layered.update({k: v for k, v in (overrides or {}).items() if v is not None})

    known = {f.name for f in fields(ClientSettings)}
    unknown = set(layered) - known
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")

    settings = replace(ClientSettings(), **{k: _normalize(k, v) for k, v in layered.items()})

    for required in ("base_uri", "user_name", "top", "side", "format"):
        if not getattr(settings, required):
            raise ConfigError(f"Setting '{required}' must not be empty")
    return settings
