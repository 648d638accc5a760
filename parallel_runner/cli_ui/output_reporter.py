"""Post-run output report.

Prints captured stdout/stderr (and launch errors) for each task after the
live display has finished.

Policies:
- OutputPolicy.ALWAYS: stdout and stderr whenever non-empty.
- OutputPolicy.STDOUT_ON_ERROR: stdout only for tasks that did not succeed;
  stderr whenever non-empty.
"""

from typing import Iterable

from rich.console import Console

from parallel_runner.core.models import OutputPolicy, Task, TaskStatus


def format_task_output(task: Task, policy: OutputPolicy = OutputPolicy.ALWAYS) -> str:
    """Labelled output sections for one task, or "" if there is nothing to show."""
    if not task.is_terminal:
        return ""  # Never captured

    show_stdout = policy == OutputPolicy.ALWAYS or task.status != TaskStatus.SUCCEEDED

    sections = []
    if show_stdout and task.stdout:
        sections.append(f"====STDOUT====\n{task.stdout}")
    if task.stderr:
        sections.append(f"====STDERR====\n{task.stderr}")
    if task.error:
        sections.append(f"====ERROR====\n{task.error}\n")

    if not sections:
        return ""
    return f"Output for {task.command}:\n" + "".join(sections)


def format_report(tasks: Iterable[Task], policy: OutputPolicy = OutputPolicy.ALWAYS) -> str:
    """Report for all tasks in ascending id order, separated by blank lines."""
    blocks = []
    for task in sorted(tasks, key=lambda t: t.id):
        block = format_task_output(task, policy)
        if block:
            blocks.append(block)
    return "\n\n".join(blocks)


class OutputReporter:
    """Writes the output report to a console.

    Captured output is written raw (no markup, highlighting or wrapping) so
    command output is reproduced as the command printed it.
    """

    def __init__(self, console: Console | None = None, policy: OutputPolicy = OutputPolicy.ALWAYS):
        self.console = console or Console()
        self.policy = policy

    def report(self, tasks: Iterable[Task]) -> str:
        text = format_report(tasks, self.policy)
        if text:
            self.console.out(text, highlight=False)
        return text
