"""Command sources.

A CommandSource yields trimmed, non-empty command strings strictly in order.
Stream-backed sources yield each command as soon as its line is read so the
supervisor can launch it before the rest of the input arrives.
"""

import logging
from typing import Iterable, Iterator, TextIO

from parallel_runner.core.errors import CommandSourceError

logger = logging.getLogger(__name__)


class CommandSource:
    """Ordered, single-pass sequence of commands to launch.

    USAGE:
        source = CommandSource.from_commands(["make lint", "make test"])
        source = CommandSource.from_stream(sys.stdin)
        for command in source:
            supervisor.launch(command)
    """

    MAX_READ_ERRORS = 5  # Give up after this many consecutive unreadable lines

    def __init__(self, lines: Iterable[str], description: str = "commands"):
        self._lines = lines
        self.description = description

    @classmethod
    def from_commands(cls, commands: Iterable[str]) -> "CommandSource":
        """Source backed by an explicit finite list."""
        return cls(list(commands), description="command list")

    @classmethod
    def from_stream(cls, stream: TextIO) -> "CommandSource":
        """Source that reads one command per line until end of input."""
        return cls(_read_lines(stream, cls.MAX_READ_ERRORS), description="input stream")

    def __iter__(self) -> Iterator[str]:
        for raw in self._lines:
            command = raw.strip()
            if not command:
                continue
            yield command


def _read_lines(stream: TextIO, max_errors: int) -> Iterator[str]:
    """Yield lines from stream, skipping lines that fail to read or decode."""
    consecutive_errors = 0
    while True:
        try:
            line = stream.readline()
        except (OSError, UnicodeDecodeError) as e:
            consecutive_errors += 1
            logger.warning(f"Skipping unreadable input line: {e}")
            if consecutive_errors >= max_errors:
                raise CommandSourceError(
                    f"Giving up after {consecutive_errors} consecutive read errors: {e}"
                ) from e
            continue

        consecutive_errors = 0
        if line == "":
            return  # EOF
        yield line
