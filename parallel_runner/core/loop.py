"""Aggregation/render loop.

The loop is the single consumer of the event channel and the single writer
of the TaskRegistry. Each iteration receives at most one message (with a
bounded wait so elapsed-time counters keep moving), applies it, redraws the
status frame and decides whether the run is over.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from parallel_runner.cli_ui.frame_renderer import render_frame
from parallel_runner.core.errors import (
    ChannelError,
    CommandSourceError,
    InvariantViolation,
    LaunchAborted,
)
from parallel_runner.core.models import (
    Completed,
    FailurePolicy,
    LaunchFailed,
    LoopState,
    Message,
    SourceExhausted,
    SourceFailed,
    Task,
    TaskLaunched,
    TaskStatus,
)
from parallel_runner.core.registry import TaskRegistry

if TYPE_CHECKING:
    from parallel_runner.cli_ui.live_display import FrameDisplay
    from parallel_runner.core.supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)


@dataclass
class RunOutcome:
    """Final state of a run, handed to the output reporter."""

    state: LoopState
    tasks: list[Task]
    stopped_early: bool

    @property
    def abandoned(self) -> list[Task]:
        """Tasks still running when the loop exited; their output is never captured."""
        return [task for task in self.tasks if not task.is_terminal]

    @property
    def all_succeeded(self) -> bool:
        return all(task.status == TaskStatus.SUCCEEDED for task in self.tasks)


class RunLoop:
    """Drain the event channel, maintain the registry and redraw until done.

    Termination:
    - FailurePolicy.STOP_ON_FIRST: exit as soon as any task is failed or
      launch_error, without waiting for tasks that are still running.
    - Otherwise (and in any case): exit once the source is exhausted and
      every task is terminal.

    Design Notes:
    - tick_seconds bounds every channel wait, so the loop never blocks
      indefinitely and "running Ns" counters update at least once per tick.
    - When a supervisor is given, a tick with an empty channel and no live
      workers while the run is unfinished means an event was lost; that is
      a ChannelError, never a silent hang.
    """

    def __init__(
        self,
        channel: "queue.Queue[Message]",
        registry: TaskRegistry,
        display: "FrameDisplay",
        *,
        tick_seconds: float = 0.5,
        failure_policy: FailurePolicy = FailurePolicy.STOP_ON_FIRST,
        abort_on_launch_error: bool = False,
        supervisor: "ProcessSupervisor | None" = None,
        stop_event: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        self.channel = channel
        self.registry = registry
        self.display = display
        self.tick_seconds = tick_seconds
        self.failure_policy = failure_policy
        self.abort_on_launch_error = abort_on_launch_error
        self.supervisor = supervisor
        self.stop_event = stop_event
        self.clock = clock

        self.state = LoopState.COLLECTING
        self.source_exhausted = False
        self.stopped_early = False
        self.iterations = 0

    def run(self) -> RunOutcome:
        """Iterate until the termination rule fires."""
        try:
            while self.step():
                pass
        finally:
            # Tell the feeder not to launch anything else
            if self.stop_event is not None:
                self.stop_event.set()

        return RunOutcome(
            state=self.state,
            tasks=self.registry.snapshot(),
            stopped_early=self.stopped_early,
        )

    def step(self) -> bool:
        """Run one iteration. Returns False once the loop should exit."""
        self.iterations += 1
        message = self._receive()
        if message is not None:
            self._apply(message)
        self._redraw()
        return not self._should_stop()

    def _receive(self) -> Message | None:
        try:
            return self.channel.get(timeout=self.tick_seconds)
        except queue.Empty:
            self._check_liveness()
            return None

    def _check_liveness(self) -> None:
        if self.supervisor is None:
            return
        # Check workers before the channel: a worker puts its event before it exits
        if self.supervisor.has_live_workers() or not self.channel.empty():
            return
        if not self.source_exhausted:
            raise ChannelError("Command feeder stopped without signalling the end of input")
        running = self.registry.running_count()
        if running:
            raise ChannelError(
                f"{running} task(s) still running but no worker is left to report them"
            )

    def _apply(self, message: Message) -> None:
        if isinstance(message, TaskLaunched):
            self.registry.add(message)
        elif isinstance(message, (Completed, LaunchFailed)):
            task = self.registry.apply(message, now=self.clock())
            if task is not None:
                logger.info(f"Task {task.id} finished: {task.status.value} ({task.command})")
        elif isinstance(message, SourceExhausted):
            self.source_exhausted = True
            if message.total != len(self.registry):
                detail = (
                    f"Source reported {message.total} task(s) but "
                    f"{len(self.registry)} were registered"
                )
                if self.registry.strict:
                    raise InvariantViolation(detail)
                logger.warning(f"Ignoring invalid event: {detail}")
        elif isinstance(message, SourceFailed):
            raise CommandSourceError(message.error)
        else:
            raise ChannelError(f"Unexpected message on event channel: {message!r}")

    def _redraw(self) -> None:
        self.display.show(render_frame(self.registry, self.clock()))

    def _should_stop(self) -> bool:
        if self.abort_on_launch_error:
            for task in self.registry:
                if task.status == TaskStatus.LAUNCH_ERROR:
                    raise LaunchAborted(f"Failed to start {task.command}: {task.error}")

        if self.source_exhausted and self.registry.all_terminal():
            self.state = LoopState.ALL_TERMINAL
            return True

        if self.failure_policy == FailurePolicy.STOP_ON_FIRST and self.registry.any_failed():
            self.stopped_early = True
            logger.info(
                f"Stopping on first failure with {self.registry.running_count()} task(s) still running"
            )
            return True

        return False
