"""Single-writer task registry.

Tasks are stored in an arena list indexed by their launch-order id. Only the
run loop calls add()/apply(); workers never see the registry.
"""

import logging
from typing import Iterator

from parallel_runner.core.errors import InvariantViolation
from parallel_runner.core.models import (
    Completed,
    LaunchFailed,
    Task,
    TaskLaunched,
    TaskStatus,
    TerminalEvent,
)

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Mutable store of Task records, id -> Task.

    strict=True raises InvariantViolation for events that contradict the
    registry; strict=False logs them and leaves the registry untouched.
    """

    def __init__(self, strict: bool = True):
        self.strict = strict
        self._tasks: list[Task] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks)

    def get(self, task_id: int) -> Task | None:
        if 0 <= task_id < len(self._tasks):
            return self._tasks[task_id]
        return None

    def snapshot(self) -> list[Task]:
        """Copies of all tasks in ascending id order."""
        return [task.model_copy() for task in self._tasks]

    def add(self, launched: TaskLaunched) -> Task | None:
        """Record a newly launched task in the running state."""
        if launched.task_id != len(self._tasks):
            self._violation(
                f"Task {launched.task_id} launched out of order "
                f"(expected id {len(self._tasks)})"
            )
            return None

        task = Task(
            id=launched.task_id,
            command=launched.command,
            started_at=launched.started_at,
        )
        self._tasks.append(task)
        return task

    def apply(self, event: TerminalEvent, now: float) -> Task | None:
        """Move a running task to its terminal state."""
        task = self.get(event.task_id)
        if task is None:
            self._violation(f"Terminal event for unknown task {event.task_id}")
            return None
        if task.is_terminal:
            self._violation(
                f"Second terminal event for task {task.id} "
                f"(already {task.status.value})"
            )
            return None

        if isinstance(event, LaunchFailed):
            task.status = TaskStatus.LAUNCH_ERROR
            task.error = event.error
        elif isinstance(event, Completed):
            task.status = TaskStatus.SUCCEEDED if event.ok else TaskStatus.FAILED
            task.exit_status = event.exit_status
            task.stdout = event.stdout
            task.stderr = event.stderr
        else:
            raise TypeError(f"Not a terminal event: {event!r}")

        task.finished_at = now
        return task

    def all_terminal(self) -> bool:
        return all(task.is_terminal for task in self._tasks)

    def any_failed(self) -> bool:
        return any(task.had_error for task in self._tasks)

    def running_count(self) -> int:
        return sum(1 for task in self._tasks if not task.is_terminal)

    def _violation(self, message: str) -> None:
        if self.strict:
            raise InvariantViolation(message)
        logger.warning(f"Ignoring invalid event: {message}")
