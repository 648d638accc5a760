"""Run configuration.

Settings come from (highest precedence first) CLI options, a YAML config
file, and the defaults below. The config file is `.parallel-runner.yaml` in
the working directory unless --config names another one.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from parallel_runner.core.errors import ConfigError
from parallel_runner.core.models import FailurePolicy, OutputPolicy

DEFAULT_CONFIG_FILE = ".parallel-runner.yaml"

DEFAULT_CONFIG_TEXT = """# Parallel runner configuration
# Commands to run when none are given with --command (stdin is read otherwise)
commands: []

# Seconds the display waits for an event before redrawing (0 < tick <= 1)
tick_seconds: 0.5

# stop: exit on the first failed command without waiting for the rest
# wait: exit only when every command has finished
failure_policy: stop

# always: print stdout and stderr of every command
# stdout-on-error: print stdout only for commands that failed
output_policy: always

# Abort the whole run (exit 1) when a command cannot be started
abort_on_launch_error: false

# Exit 1 when any command did not succeed
fail_exit_code: false

color: true
log_level: WARNING
# log_file: parallel-runner.log
"""


class RunConfig(BaseModel):
    """Validated settings for one run."""

    commands: list[str] = Field(default_factory=list)
    tick_seconds: float = 0.5
    failure_policy: FailurePolicy = FailurePolicy.STOP_ON_FIRST
    output_policy: OutputPolicy = OutputPolicy.ALWAYS
    abort_on_launch_error: bool = False
    strict_events: bool = False
    fail_exit_code: bool = False
    color: bool = True
    log_level: str = "WARNING"
    log_file: Path | None = None

    @field_validator("tick_seconds")
    @classmethod
    def _validate_tick(cls, value: float) -> float:
        if not 0 < value <= 1:
            raise ValueError("tick_seconds must be greater than 0 and at most 1")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError("log_level must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG")
        return normalized

    @field_validator("commands", mode="before")
    @classmethod
    def _ensure_list(cls, value: Any):
        if value is None:
            return []
        if isinstance(value, str):
            return value.splitlines()
        return value


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(
    path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    cwd: Path | None = None,
) -> RunConfig:
    """Build a RunConfig from an optional YAML file plus explicit overrides.

    When path is None, DEFAULT_CONFIG_FILE in cwd is used if it exists.
    Override values of None mean "not given" and are ignored.
    """
    if path is None:
        candidate = (cwd or Path.cwd()) / DEFAULT_CONFIG_FILE
        path = candidate if candidate.exists() else None

    data: dict[str, Any] = _read_config_file(path) if path is not None else {}
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    try:
        return RunConfig.model_validate(data)
    except ValidationError as e:
        source = path or "options"
        raise ConfigError(f"Invalid configuration in {source}: {e}") from e
