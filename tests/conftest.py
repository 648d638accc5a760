# conftest.py - Shared pytest fixtures for all tests
"""Shared pytest fixtures for the parallel runner test suite.

This module provides:
- A recording display that keeps every rendered frame
- A manually advanced clock for deterministic elapsed times
- Builders for tasks, registries and fully wired run loops

Usage:
    Import fixtures implicitly via pytest's fixture discovery.
"""

from __future__ import annotations

import queue
import shutil
import threading
from typing import Callable

import pytest
from rich.console import RenderableType
from rich.text import Text

from parallel_runner.core.loop import RunLoop, RunOutcome
from parallel_runner.core.models import FailurePolicy, Message, Task, TaskStatus
from parallel_runner.core.registry import TaskRegistry
from parallel_runner.core.source import CommandSource
from parallel_runner.core.supervisor import ProcessSupervisor


# =============================================================================
# Display and Clock Doubles
# =============================================================================


class RecordingDisplay:
    """FrameDisplay that records frames instead of writing to a terminal."""

    def __init__(self) -> None:
        self.frames: list[RenderableType] = []

    def show(self, frame: RenderableType) -> None:
        self.frames.append(frame)

    @property
    def plain_frames(self) -> list[str]:
        return [frame.plain if isinstance(frame, Text) else str(frame) for frame in self.frames]

    @property
    def last(self) -> str:
        return self.plain_frames[-1]


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def channel() -> "queue.Queue[Message]":
    return queue.Queue()


# =============================================================================
# Task Fixtures
# =============================================================================


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Factory for Task records with sensible defaults.

    Example:
        def test_something(make_task):
            task = make_task(0, "echo hi", status=TaskStatus.SUCCEEDED)
    """

    def _make(
        task_id: int = 0,
        command: str = "echo hi",
        status: TaskStatus = TaskStatus.RUNNING,
        started_at: float = 1000.0,
        **fields,
    ) -> Task:
        if status.is_terminal:
            fields.setdefault("finished_at", started_at + 1)
        return Task(id=task_id, command=command, status=status, started_at=started_at, **fields)

    return _make


# =============================================================================
# Run Loop Fixtures
# =============================================================================


@pytest.fixture
def run_commands(display: RecordingDisplay) -> Callable[..., RunOutcome]:
    """Run commands through a real supervisor and run loop.

    Uses a short tick so tests finish quickly. Returns the RunOutcome;
    frames are available on the `display` fixture.
    """

    def _run(
        commands: list[str],
        failure_policy: FailurePolicy = FailurePolicy.STOP_ON_FIRST,
        abort_on_launch_error: bool = False,
        strict: bool = True,
    ) -> RunOutcome:
        channel: queue.Queue[Message] = queue.Queue()
        stop = threading.Event()
        supervisor = ProcessSupervisor(channel)
        supervisor.start_feeding(CommandSource.from_commands(commands), stop)
        loop = RunLoop(
            channel,
            TaskRegistry(strict=strict),
            display,
            tick_seconds=0.05,
            failure_policy=failure_policy,
            abort_on_launch_error=abort_on_launch_error,
            supervisor=supervisor,
            stop_event=stop,
        )
        return loop.run()

    return _run


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "posix: marks tests that spawn POSIX utilities")


def pytest_collection_modifyitems(config, items):
    """Skip tests that spawn POSIX utilities when they are not installed."""
    if all(shutil.which(tool) for tool in ("true", "false", "echo", "sleep")):
        return
    skip = pytest.mark.skip(reason="POSIX utilities (true/false/echo/sleep) not available")
    for item in items:
        if "posix" in item.keywords:
            item.add_marker(skip)
