"""Data models for the parallel runner.

Tasks are Pydantic models owned by the TaskRegistry. Events are frozen
dataclasses: workers and the feeder thread only ever hand immutable messages
to the run loop, never a reference to mutable state.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel


class TaskStatus(str, Enum):
    """Lifecycle status of a launched command."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"  # Process ran and exited non-zero
    LAUNCH_ERROR = "launch_error"  # Process could not be started

    @property
    def is_terminal(self) -> bool:
        return self is not TaskStatus.RUNNING

    @property
    def is_error(self) -> bool:
        return self in (TaskStatus.FAILED, TaskStatus.LAUNCH_ERROR)


class LoopState(str, Enum):
    """State of the aggregation/render loop over the whole run."""

    COLLECTING = "collecting"
    ALL_TERMINAL = "all_terminal"


class FailurePolicy(str, Enum):
    """When the render loop stops waiting for tasks."""

    STOP_ON_FIRST = "stop"  # Exit on the first failed/launch_error task
    WAIT_FOR_ALL = "wait"  # Exit only when every task is terminal


class OutputPolicy(str, Enum):
    """Which captured streams the output reporter prints."""

    ALWAYS = "always"
    STDOUT_ON_ERROR = "stdout-on-error"


class Task(BaseModel):
    """Tracked lifecycle record for one launched command."""

    id: int
    command: str
    status: TaskStatus = TaskStatus.RUNNING
    started_at: float  # time.monotonic() at launch
    finished_at: float | None = None
    exit_status: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def had_error(self) -> bool:
        return self.status.is_error

    def elapsed_seconds(self, now: float) -> int:
        """Whole seconds since launch, frozen once the task finished."""
        end = self.finished_at if self.finished_at is not None else now
        return max(0, int(end - self.started_at))


# --- Channel messages ---


@dataclass(frozen=True)
class TaskLaunched:
    """A command was assigned an id and its worker is about to start."""

    task_id: int
    command: str
    started_at: float


@dataclass(frozen=True)
class Completed:
    """The process ran to completion."""

    task_id: int
    exit_status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


@dataclass(frozen=True)
class LaunchFailed:
    """The process could not be started."""

    task_id: int
    error: str


@dataclass(frozen=True)
class SourceExhausted:
    """No more tasks will be launched."""

    total: int


@dataclass(frozen=True)
class SourceFailed:
    """The command source could not be read."""

    error: str


TerminalEvent = Completed | LaunchFailed
Message = TaskLaunched | Completed | LaunchFailed | SourceExhausted | SourceFailed
