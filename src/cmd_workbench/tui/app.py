"""Workbench shell: sidebar of commands, tabbed command panels, shared connection.

// [LAW:locality-or-seam] Thin coordinator. Panels own their invokers; the
//   app owns the channel wiring and the transport worker.
// [LAW:one-source-of-truth] BroadcastChannel.connected is the only
//   connection state; the status line is derived from it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.content import Content
from textual.containers import Horizontal
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, OptionList, Static, TabbedContent, TabPane
from textual.widgets.option_list import Option
from rich.markup import escape

from cmd_workbench.core.commands import CommandDef
from cmd_workbench.core.message import CommandMessage
from cmd_workbench.pipeline.channel import BroadcastChannel
from cmd_workbench.pipeline.transport import WebSocketTransport
from cmd_workbench.tui.command_panel import CommandPanel

logger = logging.getLogger(__name__)

NamedArgsLoader = Callable[[str], dict[str, str] | None]
NamedArgsSaver = Callable[[str, dict[str, str]], None]


class WorkbenchApp(App):
    """TUI application for cmd-workbench."""

    TITLE = "cmd-workbench"

    CSS = """
    #body {
        height: 1fr;
    }

    #sidebar {
        width: 32;
        border-right: solid $accent;
    }

    #panels {
        width: 1fr;
    }

    #status {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("ctrl+r", "run_panel", "Run", priority=True),
        Binding("ctrl+w", "close_panel", "Close panel", priority=True),
        Binding("ctrl+l", "clear_panel", "Clear view", priority=True),
    ]

    def __init__(
        self,
        channel: BroadcastChannel,
        commands: Sequence[CommandDef],
        *,
        transport: WebSocketTransport | None = None,
        load_named_args: NamedArgsLoader | None = None,
        save_named_args: NamedArgsSaver | None = None,
        output_dir: Path | None = None,
    ) -> None:
        super().__init__()
        self._channel = channel
        self._commands = {defn.key: defn for defn in commands}
        self._transport = transport
        self._load_named_args = load_named_args
        self._save_named_args = save_named_args
        self._output_dir = output_dir
        self._panel_counter = 0
        self._fault_sub = None
        self._last_fault = ""

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="body"):
            yield OptionList(
                *[Option(Content(defn.title), id=defn.key) for defn in self._commands.values()],
                id="sidebar",
            )
            yield TabbedContent(id="panels")
        yield Static("", id="status")
        yield Footer()

    def on_mount(self) -> None:
        # Wildcard listener: sees every message, reacts only to global faults.
        self._fault_sub = self._channel.add_listener(self._on_channel_message)
        if self._transport is not None:
            self.run_worker(self._run_transport(), name="transport", exclusive=True)
        self.set_interval(0.5, self._refresh_status)
        self._refresh_status()

    def on_unmount(self) -> None:
        if self._fault_sub is not None:
            self._fault_sub.release()

    async def _run_transport(self) -> None:
        transport = self._transport
        if transport is None:
            return
        logger.info("connecting url=%s", transport.url)
        await transport.run()

    # ------------------------------------------------------------------ status

    def _on_channel_message(self, message: CommandMessage) -> None:
        if not message.is_global_fault:
            return
        self._last_fault = message.error
        self.notify(f"Connection lost: {escape(message.error)}", severity="error")
        self._refresh_status()

    def status_text(self) -> str:
        if self._channel.connected:
            target = self._transport.url if self._transport is not None else "server"
            return f"connected: {target}"
        if self._last_fault:
            return f"disconnected: {self._last_fault}"
        return "not connected"

    def _refresh_status(self) -> None:
        try:
            self.query_one("#status", Static).update(self.status_text())
        except NoMatches:
            pass

    # ------------------------------------------------------------------ panels

    def _get_tabs(self) -> TabbedContent:
        return self.query_one("#panels", TabbedContent)

    def open_panels(self) -> list[CommandPanel]:
        return list(self.query(CommandPanel))

    def active_panel(self) -> CommandPanel | None:
        pane = self._get_tabs().active_pane
        if pane is None:
            return None
        try:
            return pane.query_one(CommandPanel)
        except NoMatches:
            return None

    async def open_panel(self, command_key: str) -> CommandPanel:
        """Open a NEW panel for a command; the same command may be open many times."""
        defn = self._commands[command_key]
        self._panel_counter += 1
        owner_id = f"{defn.key}-{self._panel_counter}"
        named_args = self._load_named_args(defn.key) if self._load_named_args else None
        panel = CommandPanel(
            self._channel,
            defn,
            owner_id=owner_id,
            named_args=named_args,
            on_named_args_changed=self._save_named_args,
            output_dir=self._output_dir,
        )
        pane_id = f"pane-{owner_id}"
        tabs = self._get_tabs()
        await tabs.add_pane(TabPane(Content(defn.title), panel, id=pane_id))
        tabs.active = pane_id
        logger.info("panel opened owner=%s token=%s", owner_id, panel.invoker.token)
        return panel

    async def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        key = event.option.id
        if key in self._commands:
            await self.open_panel(key)

    def action_run_panel(self) -> None:
        panel = self.active_panel()
        if panel is not None:
            panel.run_command()

    def action_clear_panel(self) -> None:
        panel = self.active_panel()
        if panel is not None:
            panel.clear_view()

    async def action_close_panel(self) -> None:
        tabs = self._get_tabs()
        pane = tabs.active_pane
        if pane is None or pane.id is None:
            return
        await tabs.remove_pane(pane.id)
        logger.info("panel closed pane=%s", pane.id)
