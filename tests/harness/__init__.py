"""Textual in-process test harness for cmd-workbench.

Re-exports all public API for convenient imports:
    from tests.harness import run_app, open_and_settle, is_busy, ...
"""

from tests.harness.app_runner import run_app
from tests.harness.interactions import (
    press_and_settle,
    open_and_settle,
    deliver_and_settle,
)
from tests.harness.assertions import (
    is_busy,
    panel_tokens,
)
from tests.harness.builders import RecordingWriter, chunk, success, error, frame

__all__ = [
    "run_app",
    "press_and_settle",
    "open_and_settle",
    "deliver_and_settle",
    "is_busy",
    "panel_tokens",
    "RecordingWriter",
    "chunk",
    "success",
    "error",
    "frame",
]
