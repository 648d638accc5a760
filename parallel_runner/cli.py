"""CLI entry point for the parallel runner.

Commands:
- parallel-runner run: Run commands concurrently with a live status view
- parallel-runner init: Write a default config file
- parallel-runner show-config: Print the effective configuration
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.markup import escape

from parallel_runner import __version__
from parallel_runner.cli_ui.live_display import LiveFrameDisplay
from parallel_runner.cli_ui.output_reporter import OutputReporter
from parallel_runner.config import DEFAULT_CONFIG_FILE, DEFAULT_CONFIG_TEXT, RunConfig, load_config
from parallel_runner.core.errors import RunnerError
from parallel_runner.core.loop import RunLoop, RunOutcome
from parallel_runner.core.models import FailurePolicy, Message, OutputPolicy
from parallel_runner.core.registry import TaskRegistry
from parallel_runner.core.source import CommandSource
from parallel_runner.core.supervisor import ProcessSupervisor

console = Console()
logger = logging.getLogger(__name__)


def configure_logging(level: str, log_file: Path | None = None) -> None:
    """Configure root logging.

    Logs go to stderr, or to log_file when set so they do not tear the live frame.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        filename=str(log_file) if log_file else None,
    )


def execute(config: RunConfig, source: CommandSource, out: Console) -> RunOutcome:
    """Launch every command from source, display progress, report output."""
    channel: queue.Queue[Message] = queue.Queue()
    stop = threading.Event()
    supervisor = ProcessSupervisor(channel)
    registry = TaskRegistry(strict=config.strict_events)

    supervisor.start_feeding(source, stop)
    with LiveFrameDisplay(out) as display:
        loop = RunLoop(
            channel,
            registry,
            display,
            tick_seconds=config.tick_seconds,
            failure_policy=config.failure_policy,
            abort_on_launch_error=config.abort_on_launch_error,
            supervisor=supervisor,
            stop_event=stop,
        )
        outcome = loop.run()

    if outcome.stopped_early:
        abandoned = len(outcome.abandoned)
        out.print(
            f"[red]Stopped after first failure[/red] "
            f"({abandoned} task(s) still running, output not captured)"
        )
    else:
        out.print("All done")

    OutputReporter(out, policy=config.output_policy).report(outcome.tasks)
    return outcome


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Parallel Runner - run commands concurrently with a live status view."""
    pass


@main.command()
@click.option(
    "-c",
    "--command",
    "commands",
    multiple=True,
    help="Command to run (repeatable). Reads commands from stdin when omitted.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help=f"Config file (default: {DEFAULT_CONFIG_FILE} if present)",
)
@click.option("--tick", type=float, default=None, help="Redraw interval in seconds (<= 1)")
@click.option(
    "--on-failure",
    type=click.Choice([p.value for p in FailurePolicy]),
    default=None,
    help="stop: exit on first failure; wait: wait for every command",
)
@click.option(
    "--output",
    "output_policy",
    type=click.Choice([p.value for p in OutputPolicy]),
    default=None,
    help="Which captured output to print after the run",
)
@click.option(
    "--on-launch-error",
    type=click.Choice(["capture", "abort"]),
    default=None,
    help="capture: record as a task state; abort: stop the run with exit 1",
)
@click.option("--fail-exit-code", is_flag=True, default=False, help="Exit 1 if any command failed")
@click.option("--no-color", is_flag=True, default=False, help="Disable colors")
@click.option("--debug", is_flag=True, default=False, help="Debug logging and strict event checks")
@click.option("--log-level", default=None, help="Logging level (default: WARNING)")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write logs to this file instead of stderr",
)
def run(
    commands: tuple[str, ...],
    config_path: Path | None,
    tick: float | None,
    on_failure: str | None,
    output_policy: str | None,
    on_launch_error: str | None,
    fail_exit_code: bool,
    no_color: bool,
    debug: bool,
    log_level: str | None,
    log_file: Path | None,
) -> None:
    """Run commands concurrently and show their status until done.

    Each command is split on whitespace into a program and its arguments;
    no shell is involved, so quotes, pipes and && are not interpreted.

    Example:
        parallel-runner run -c "make lint" -c "make test"
        printf 'sleep 1\\necho hi\\n' | parallel-runner run
    """
    overrides = {
        "commands": list(commands) or None,
        "tick_seconds": tick,
        "failure_policy": on_failure,
        "output_policy": output_policy,
        "abort_on_launch_error": None if on_launch_error is None else on_launch_error == "abort",
        "fail_exit_code": True if fail_exit_code else None,
        "log_level": "DEBUG" if debug else log_level,
        "log_file": log_file,
        "strict_events": True if debug else None,
        "color": False if no_color else None,
    }

    try:
        config = load_config(config_path, overrides)
    except RunnerError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    configure_logging(config.log_level, config.log_file)
    out = console if config.color else Console(no_color=True)

    if config.commands:
        source = CommandSource.from_commands(config.commands)
    else:
        source = CommandSource.from_stream(click.get_text_stream("stdin"))
    logger.debug(f"Reading commands from {source.description}")

    try:
        outcome = execute(config, source, out)
    except RunnerError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if config.fail_exit_code and not outcome.all_succeeded:
        sys.exit(1)


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init(force: bool) -> None:
    """Write a default config file to the current directory."""
    config_path = Path.cwd() / DEFAULT_CONFIG_FILE
    if config_path.exists() and not force:
        console.print(f"[yellow]{DEFAULT_CONFIG_FILE} already exists[/yellow]")
        return

    config_path.write_text(DEFAULT_CONFIG_TEXT, encoding="utf-8")
    console.print(f"[green]Wrote {DEFAULT_CONFIG_FILE}[/green]")


@main.command("show-config")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help=f"Config file (default: {DEFAULT_CONFIG_FILE} if present)",
)
def show_config(config_path: Path | None) -> None:
    """Print the effective configuration as YAML."""
    try:
        config = load_config(config_path)
    except RunnerError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    click.echo(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False), nl=False)


if __name__ == "__main__":
    main()
