"""Parallel Runner - run commands concurrently with a live status view.

Launches every command at once, tracks each one until it succeeds, fails or
cannot be started, and prints captured output when the run is over.
"""

__version__ = "0.1.0"
