"""Tests for status frame rendering.

Frames are pure functions of (tasks, now), so they are checked directly
without a terminal.
"""

from __future__ import annotations

import io

from rich.console import Console

from parallel_runner.cli_ui.frame_renderer import (
    HEADER,
    render_frame,
    render_task_line,
    status_label,
)
from parallel_runner.core.models import TaskStatus


def to_ansi(frame) -> str:
    """Render a frame the way a color terminal would receive it."""
    console = Console(file=io.StringIO(), force_terminal=True, color_system="standard", width=120)
    console.print(frame)
    return console.file.getvalue()


class TestStatusLabel:
    """Tests for per-status labels."""

    def test_labels(self, make_task):
        """Each status maps to its label; running includes elapsed seconds."""
        assert status_label(make_task(started_at=10.0), now=14.2) == "running 4s"
        assert status_label(make_task(status=TaskStatus.SUCCEEDED), now=0) == "done"
        assert status_label(make_task(status=TaskStatus.FAILED), now=0) == "error"
        assert status_label(make_task(status=TaskStatus.LAUNCH_ERROR), now=0) == "failed to start"


class TestRenderTaskLine:
    """Tests for a single task line."""

    def test_line_contains_label_and_command(self, make_task):
        """The line is '<label>: <command>'."""
        line = render_task_line(make_task(command="make test", started_at=0.0), now=3.0)
        assert line.plain == "running 3s: make test"

    def test_command_markup_is_escaped(self, make_task):
        """Rich markup in a command is shown literally, not interpreted."""
        line = render_task_line(
            make_task(command="echo [bold]hi[/bold]", status=TaskStatus.SUCCEEDED), now=0
        )
        assert line.plain == "done: echo [bold]hi[/bold]"

    def test_status_colors(self, make_task):
        """Running is yellow, done green, errors red."""
        running = to_ansi(render_task_line(make_task(), now=1000.0))
        done = to_ansi(render_task_line(make_task(status=TaskStatus.SUCCEEDED), now=0))
        failed = to_ansi(render_task_line(make_task(status=TaskStatus.FAILED), now=0))

        assert "\x1b[33m" in running
        assert "\x1b[32m" in done
        assert "\x1b[31m" in failed


class TestRenderFrame:
    """Tests for whole frames."""

    def test_empty_frame_is_header_only(self):
        """With no tasks only the header is drawn."""
        assert render_frame([], now=0).plain == HEADER

    def test_one_line_per_task_in_id_order(self, make_task):
        """Tasks are listed in ascending id order whatever the input order."""
        tasks = [
            make_task(2, "third", status=TaskStatus.FAILED),
            make_task(0, "first", status=TaskStatus.SUCCEEDED),
            make_task(1, "second", started_at=5.0),
            make_task(3, "fourth", status=TaskStatus.LAUNCH_ERROR),
        ]

        frame = render_frame(tasks, now=7.5)

        assert frame.plain.splitlines() == [
            "Running Parallel",
            "done: first",
            "running 2s: second",
            "error: third",
            "failed to start: fourth",
        ]

    def test_same_inputs_give_identical_output(self, make_task):
        """Rendering is deterministic down to the escape sequences."""
        tasks = [make_task(0, "sleep 5"), make_task(1, "true", status=TaskStatus.SUCCEEDED)]

        assert to_ansi(render_frame(tasks, now=1003.0)) == to_ansi(render_frame(tasks, now=1003.0))

    def test_only_elapsed_changes_over_time(self, make_task):
        """Later clock readings change only running tasks' elapsed field."""
        tasks = [make_task(0, "sleep 5"), make_task(1, "true", status=TaskStatus.SUCCEEDED)]

        early = render_frame(tasks, now=1001.0).plain.splitlines()
        late = render_frame(tasks, now=1009.0).plain.splitlines()

        assert early[0] == late[0]
        assert early[2] == late[2]
        assert early[1] == "running 1s: sleep 5"
        assert late[1] == "running 9s: sleep 5"
