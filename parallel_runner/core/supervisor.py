"""Process supervisor: one worker thread per command.

Each worker starts its child process, waits for it, and reports exactly one
terminal event on the shared channel. The supervisor itself never touches
task state; it only produces messages.

Design Notes:
- Commands are split on whitespace only. There is no shell, so quoting,
  pipes and `&&` are passed through as literal arguments.
- Children get stdin from /dev/null so they cannot consume the command
  stream when commands are read from standard input.
- Workers are daemon threads and are never cancelled. If the run loop exits
  early, still-running children outlive the display loop (and the
  interpreter), which orphans them.
- Concurrency is unbounded: a few hundred simultaneous commands is the
  practical ceiling before thread and file-descriptor limits start to bite.
"""

import logging
import queue
import subprocess
import threading
import time
from typing import Iterable

from parallel_runner.core.errors import CommandSourceError
from parallel_runner.core.models import (
    Completed,
    LaunchFailed,
    Message,
    SourceExhausted,
    SourceFailed,
    TaskLaunched,
    TerminalEvent,
)

logger = logging.getLogger(__name__)


def split_command(command: str) -> list[str]:
    """Split a command line into program and arguments on whitespace."""
    return command.split()


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def run_command(task_id: int, command: str) -> TerminalEvent:
    """Run one command to completion and describe the outcome.

    Returns LaunchFailed if the process could not be started (missing
    executable, permission denied, empty command), else Completed.
    """
    argv = split_command(command)
    if not argv:
        return LaunchFailed(task_id=task_id, error="Empty command")

    try:
        result = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
        )
    except (OSError, ValueError) as e:
        return LaunchFailed(task_id=task_id, error=str(e))

    return Completed(
        task_id=task_id,
        exit_status=result.returncode,
        stdout=_decode(result.stdout),
        stderr=_decode(result.stderr),
    )


class ProcessSupervisor:
    """Launch commands concurrently and funnel their outcomes into one channel.

    USAGE:
        channel: queue.Queue[Message] = queue.Queue()
        supervisor = ProcessSupervisor(channel)
        supervisor.start_feeding(CommandSource.from_stream(sys.stdin))
        # RunLoop(channel, ...) consumes TaskLaunched / Completed / LaunchFailed
        # followed by one SourceExhausted (or SourceFailed).
    """

    def __init__(self, channel: "queue.Queue[Message]"):
        self.channel = channel
        self._next_id = 0
        self._workers: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._feeder: threading.Thread | None = None

    @property
    def launched_count(self) -> int:
        return self._next_id

    def launch(self, command: str) -> int:
        """Assign the next id to command and start its worker."""
        task_id = self._next_id
        self._next_id += 1

        # Announce before starting the worker so the loop always sees the
        # task before its terminal event (the channel is FIFO).
        self.channel.put(
            TaskLaunched(task_id=task_id, command=command, started_at=time.monotonic())
        )
        worker = threading.Thread(
            target=self._work,
            args=(task_id, command),
            name=f"task-{task_id}",
            daemon=True,
        )
        with self._lock:
            self._workers.append(worker)
        worker.start()
        logger.debug(f"Launched task {task_id}: {command}")
        return task_id

    def _work(self, task_id: int, command: str) -> None:
        """Worker body. Puts exactly one terminal event on the channel."""
        try:
            event = run_command(task_id, command)
        except Exception as e:
            logger.exception(f"Task {task_id} crashed while waiting for '{command}'")
            event = Completed(
                task_id=task_id,
                exit_status=-1,
                stdout="",
                stderr=f"Internal error while running command: {e}",
            )

        if isinstance(event, LaunchFailed):
            logger.info(f"Task {task_id} failed to start: {event.error}")
        else:
            logger.debug(f"Task {task_id} exited with status {event.exit_status}")
        self.channel.put(event)

    def feed(self, commands: Iterable[str], stop: threading.Event | None = None) -> int:
        """Launch every command in order, then signal the end of the source.

        Stops launching once stop is set. Returns the number of launched tasks.
        """
        try:
            for command in commands:
                if stop is not None and stop.is_set():
                    logger.info("Run loop finished; not launching remaining commands")
                    break
                self.launch(command)
        except CommandSourceError as e:
            self.channel.put(SourceFailed(error=str(e)))
            return self._next_id
        except Exception as e:
            logger.exception("Command source raised unexpectedly")
            self.channel.put(SourceFailed(error=f"Unexpected error reading commands: {e}"))
            return self._next_id

        self.channel.put(SourceExhausted(total=self._next_id))
        return self._next_id

    def start_feeding(
        self, commands: Iterable[str], stop: threading.Event | None = None
    ) -> threading.Thread:
        """Run feed() on a background thread so launching overlaps rendering."""
        self._feeder = threading.Thread(
            target=self.feed,
            args=(commands, stop),
            name="command-feeder",
            daemon=True,
        )
        self._feeder.start()
        return self._feeder

    def has_live_workers(self) -> bool:
        """True while any worker (or the feeder) may still put a message."""
        if self._feeder is not None and self._feeder.is_alive():
            return True
        with self._lock:
            return any(worker.is_alive() for worker in self._workers)
