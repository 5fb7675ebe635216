"""Shared headless run configuration.

Centralises reading of ~/.headless/configuration.json so every entry point
resolves output format and turn budget the same way.
"""

import json
import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any


class OutputFormat(StrEnum):
    """How loop output is rendered on stdout. Fixed for the whole run."""

    TEXT = "text"
    JSON = "json"
    STREAM_JSON = "stream-json"


UNLIMITED_TURNS = -1

# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------

HEADLESS_CONFIG_FILE = Path.home() / ".headless" / "configuration.json"


def get_headless_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from ~/.headless/configuration.json (or *path*)."""
    config_file = path or HEADLESS_CONFIG_FILE
    if not config_file.exists():
        return {}
    try:
        with open(config_file, encoding="utf-8-sig") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Derived helpers
# ---------------------------------------------------------------------------


def get_output_format() -> OutputFormat:
    """Return the output format from HEADLESS_OUTPUT_FORMAT or the config file."""
    raw = os.environ.get("HEADLESS_OUTPUT_FORMAT") or get_headless_config().get(
        "output_format", OutputFormat.TEXT
    )
    try:
        return OutputFormat(str(raw).lower())
    except ValueError:
        return OutputFormat.TEXT


def get_max_session_turns() -> int:
    """Return the turn budget; -1 means unlimited."""
    raw = os.environ.get("HEADLESS_MAX_SESSION_TURNS")
    if raw is None:
        raw = get_headless_config().get("max_session_turns", UNLIMITED_TURNS)
    try:
        return int(raw)
    except (TypeError, ValueError):
        return UNLIMITED_TURNS


def get_log_level() -> str:
    return str(get_headless_config().get("log_level", "WARNING")).upper()


# ---------------------------------------------------------------------------
# RunConfig
# ---------------------------------------------------------------------------


@dataclass
class RunConfig:
    """Per-run configuration loaded from ~/.headless/configuration.json and env."""

    output_format: OutputFormat = field(default_factory=get_output_format)
    max_session_turns: int = field(default_factory=get_max_session_turns)
    debug_mode: bool = False
    log_level: str = field(default_factory=get_log_level)

    def __post_init__(self) -> None:
        self.output_format = OutputFormat(self.output_format)

    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug_mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug_mode else self.log_level.upper()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunConfig":
        """Build a RunConfig from a dict, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
