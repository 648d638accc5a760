"""Live terminal display for status frames.

This is the only place a frame is written to the terminal. Rich's Live
redraws the frame in place (cursor-up + erase) on terminals; on pipes and
dumb terminals only the final frame is printed when the display stops.
"""

from typing import Protocol

from rich.console import Console, RenderableType
from rich.live import Live


class FrameDisplay(Protocol):
    """Anything the run loop can hand a rendered frame to."""

    def show(self, frame: RenderableType) -> None: ...


class LiveFrameDisplay:
    """Redraws frames in place using rich.live.Live.

    USAGE:
        with LiveFrameDisplay(console) as display:
            display.show(render_frame(tasks, now))

    Design Notes:
    - auto_refresh is disabled: the run loop decides when to redraw, so the
      frame on screen always matches the last applied event.
    - The final frame is left on screen (not transient) so the summary
      remains visible above the output report.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._live: Live | None = None
        self.frames_shown = 0

    def __enter__(self) -> "LiveFrameDisplay":
        self._live = Live(
            console=self.console,
            auto_refresh=False,
            transient=False,
            redirect_stdout=False,
            redirect_stderr=False,
        )
        self._live.start()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    def show(self, frame: RenderableType) -> None:
        if self._live is None:
            raise RuntimeError("LiveFrameDisplay used outside of its context")
        self._live.update(frame, refresh=True)
        self.frames_shown += 1
