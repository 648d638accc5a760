"""Terminal UI components.

- Pure frame rendering of the task list
- Live in-place display of frames
- Post-run output report
"""

from parallel_runner.cli_ui.frame_renderer import render_frame, render_task_line
from parallel_runner.cli_ui.live_display import FrameDisplay, LiveFrameDisplay
from parallel_runner.cli_ui.output_reporter import OutputReporter, format_report

__all__ = [
    "FrameDisplay",
    "LiveFrameDisplay",
    "OutputReporter",
    "format_report",
    "render_frame",
    "render_task_line",
]
