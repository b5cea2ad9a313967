"""App lifecycle management for Textual in-process tests.

Creates WorkbenchApp instances wired for testing and manages run_test() lifecycle.
State isolation: every call creates a fresh channel, writer, and app.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from textual.pilot import Pilot

from cmd_workbench.core.commands import DEFAULT_COMMANDS
from cmd_workbench.pipeline.channel import BroadcastChannel
from cmd_workbench.tui.app import WorkbenchApp
from tests.harness.builders import RecordingWriter


@asynccontextmanager
async def run_app(
    *,
    size: tuple[int, int] = (140, 50),
    commands=DEFAULT_COMMANDS,
    connected: bool = True,
    named_args_store: dict | None = None,
    output_dir=None,
    message_hook: Callable | None = None,
) -> AsyncIterator[tuple[Pilot, WorkbenchApp, BroadcastChannel, RecordingWriter]]:
    """Create and run a WorkbenchApp in test mode.

    Yields (pilot, app, channel, writer). No transport runs; inbound traffic
    is injected with channel.deliver() and outbound traffic lands in writer.sent.

    Args:
        size: Terminal dimensions (width, height).
        commands: Command catalog for the sidebar.
        connected: Attach the recording writer before the app starts.
        named_args_store: Dict backing named-args load/save, keyed by command key.
        output_dir: Directory used by the panels' save-output action.
        message_hook: Optional Textual message hook.
    """
    # [LAW:no-shared-mutable-globals] Fresh state for every test
    channel = BroadcastChannel()
    writer = RecordingWriter()
    if connected:
        channel.attach(writer)

    load_named_args = save_named_args = None
    if named_args_store is not None:
        load_named_args = named_args_store.get

        def save_named_args(key, mapping):
            named_args_store[key] = dict(mapping)

    app = WorkbenchApp(
        channel,
        commands,
        load_named_args=load_named_args,
        save_named_args=save_named_args,
        output_dir=output_dir,
    )

    async with app.run_test(size=size, message_hook=message_hook) as pilot:
        await pilot.pause()
        yield pilot, app, channel, writer
