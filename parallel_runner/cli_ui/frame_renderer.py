"""Status frame rendering.

Pure functions from a task snapshot (and a clock value) to a Rich Text frame.
Nothing here writes to the terminal, so frames can be compared in tests.

SECURITY: Command text is user-controlled and is escaped before being
embedded in markup.
"""

from typing import Iterable

from rich.markup import escape
from rich.text import Text

from parallel_runner.core.models import Task, TaskStatus

HEADER = "Running Parallel"

# Status label prefixes, keyed by status
STATUS_STYLES = {
    TaskStatus.RUNNING: "yellow",
    TaskStatus.SUCCEEDED: "green",
    TaskStatus.FAILED: "red",
    TaskStatus.LAUNCH_ERROR: "red bold",
}


def status_label(task: Task, now: float) -> str:
    """Plain status prefix for a task, e.g. 'running 3s'."""
    if task.status == TaskStatus.RUNNING:
        return f"running {task.elapsed_seconds(now)}s"
    if task.status == TaskStatus.SUCCEEDED:
        return "done"
    if task.status == TaskStatus.FAILED:
        return "error"
    return "failed to start"


def render_task_line(task: Task, now: float) -> Text:
    """One frame line: colored status label followed by the command."""
    style = STATUS_STYLES.get(task.status, "white")
    label = status_label(task, now)
    return Text.from_markup(f"[{style}]{label}: [/][white]{escape(task.command)}[/]")


def render_frame(tasks: Iterable[Task], now: float) -> Text:
    """Header line plus one line per task, in ascending id order."""
    lines = [Text(HEADER, style="bold underline white")]
    for task in sorted(tasks, key=lambda t: t.id):
        lines.append(render_task_line(task, now))
    return Text("\n").join(lines)
