"""Core modules for the parallel runner."""

from parallel_runner.core.errors import (
    ChannelError,
    CommandSourceError,
    InvariantViolation,
    LaunchAborted,
    RunnerError,
)
from parallel_runner.core.models import (
    Completed,
    FailurePolicy,
    LaunchFailed,
    LoopState,
    OutputPolicy,
    SourceExhausted,
    SourceFailed,
    Task,
    TaskLaunched,
    TaskStatus,
)
from parallel_runner.core.registry import TaskRegistry
from parallel_runner.core.source import CommandSource
from parallel_runner.core.supervisor import ProcessSupervisor

__all__ = [
    "ChannelError",
    "CommandSource",
    "CommandSourceError",
    "Completed",
    "FailurePolicy",
    "InvariantViolation",
    "LaunchAborted",
    "LaunchFailed",
    "LoopState",
    "OutputPolicy",
    "ProcessSupervisor",
    "RunnerError",
    "SourceExhausted",
    "SourceFailed",
    "Task",
    "TaskLaunched",
    "TaskRegistry",
    "TaskStatus",
]
