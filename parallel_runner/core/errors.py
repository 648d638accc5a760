"""Program-level errors.

Per-task failures (non-zero exit, launch failure) are task states, not
exceptions. Only the errors below end a run.
"""


class RunnerError(Exception):
    """Base class for errors that abort the whole run."""

    pass


class CommandSourceError(RunnerError):
    """The command source could not be read."""

    pass


class ChannelError(RunnerError):
    """An event was lost between a worker and the run loop."""

    pass


class InvariantViolation(RunnerError):
    """An event contradicts the task registry (unknown id, double terminal event)."""

    pass


class LaunchAborted(RunnerError):
    """A command could not be started and the run is configured to abort on that."""

    pass


class ConfigError(RunnerError):
    """Configuration file could not be parsed or validated."""

    pass
