"""Command panel: one invoker's controls and streamed output.

The panel IS the invoker's output sink. Its run button is disabled from the
invoker's running hook; that disabled state is the re-entrancy guard the
user sees.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from rich.markup import escape
from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import Button, Input, Label, ListItem, ListView, LoadingIndicator, Log, Static, TextArea

from cmd_workbench.core.commands import CommandDef, NamedArgs, output_file_name
from cmd_workbench.core.invoker import CommandInvoker
from cmd_workbench.core.output import TextOutputSink
from cmd_workbench.pipeline.channel import BroadcastChannel

logger = logging.getLogger(__name__)

KeyHandler = Callable[[str, str], bool]


class ArgsArea(TextArea):
    """Argument text area that lets the panel claim Enter before a newline is inserted."""

    def __init__(self, *args, key_handler: KeyHandler | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.key_handler = key_handler

    def _on_key(self, event: events.Key) -> None:
        if self.key_handler is not None and self.key_handler(event.key, self.text):
            event.prevent_default()
            event.stop()


class CommandPanel(Widget):
    """Controls for one command definition plus its output log."""

    DEFAULT_CSS = """
    CommandPanel {
        height: 1fr;
        layout: vertical;
        padding: 0 1;
    }

    CommandPanel .row {
        height: auto;
        margin-bottom: 1;
    }

    CommandPanel .row-label {
        width: 14;
        padding-top: 1;
    }

    CommandPanel #args {
        height: 4;
        width: 1fr;
    }

    CommandPanel #named-args {
        width: 24;
    }

    CommandPanel #attachments {
        height: 4;
        width: 1fr;
        border: round $panel-lighten-1;
    }

    CommandPanel #busy {
        height: 1;
        width: 6;
    }

    CommandPanel #output {
        height: 1fr;
        border: round $panel-lighten-1;
    }
    """

    def __init__(
        self,
        channel: BroadcastChannel,
        command_def: CommandDef,
        *,
        owner_id: str,
        named_args: dict[str, str] | None = None,
        on_named_args_changed: Callable[[str, dict[str, str]], None] | None = None,
        output_dir: Path | None = None,
        id: str | None = None,
    ) -> None:
        super().__init__(id=id)
        self._command_def = command_def
        self._buffer = TextOutputSink()
        self._on_named_args_changed = on_named_args_changed
        self._output_dir = output_dir
        self.named_args = NamedArgs(named_args)
        self.invoker = CommandInvoker(
            channel,
            command_def,
            self,
            owner_id=owner_id,
            on_running_changed=self._on_running_changed,
        )

    @property
    def command_def(self) -> CommandDef:
        return self._command_def

    @property
    def output_text(self) -> str:
        return self._buffer.text

    def compose(self) -> ComposeResult:
        defn = self._command_def
        args_hint = " -h + Enter for help" if defn.args_enabled else "<no args>"
        with Horizontal(classes="row"):
            yield Label("Command:", classes="row-label")
            yield Button(defn.display_name, id="run", variant="primary")
            yield LoadingIndicator(id="busy")
            yield Button("Clear view", id="clear-view")
        with Horizontal(classes="row"):
            yield Label("Args:", classes="row-label")
            yield ArgsArea(id="args", key_handler=self.invoker.handle_args_key, disabled=not defn.args_enabled)
            with Vertical():
                yield Input(placeholder="named args", id="named-args", disabled=not defn.args_enabled)
                with Horizontal():
                    yield Button("Save", id="named-save")
                    yield Button("Delete", id="named-delete")
                    yield Button("Clear", id="named-clear")
        yield Static(args_hint, id="args-hint")
        with Horizontal(classes="row"):
            yield Label("Attachments:", classes="row-label")
            yield ListView(id="attachments")
            with Vertical():
                yield Input(placeholder="file path", id="attach-path")
                with Horizontal():
                    yield Button("Add", id="attach-add")
                    yield Button("Remove all", id="attach-clear")
        with Horizontal(classes="row"):
            yield Label("Output:", classes="row-label")
            yield Button("Clear", id="out-clear")
            yield Button("Save", id="out-save")
            yield Button("Copy", id="out-copy")
        yield Log(id="output")

    def on_mount(self) -> None:
        self.query_one("#busy", LoadingIndicator).display = False
        log = self._get_log()
        if log is not None and self._buffer.text:
            log.write(self._buffer.text)

    def on_unmount(self) -> None:
        self.invoker.close()

    # ------------------------------------------------------------------ sink

    def append(self, line: str) -> None:
        self._buffer.append(line)
        log = self._get_log()
        if log is not None:
            log.write_line(line)

    def clear(self) -> str:
        """Empty the output unless a command is running. Returns the old text."""
        if self.invoker.is_running:
            return ""
        last = self._buffer.clear()
        log = self._get_log()
        if log is not None:
            log.clear()
        return last

    def _get_log(self) -> Log | None:
        try:
            return self.query_one("#output", Log)
        except NoMatches:
            return None

    # ------------------------------------------------------------------ busy lock

    def _on_running_changed(self, running: bool) -> None:
        try:
            self.query_one("#run", Button).disabled = running
            self.query_one("#busy", LoadingIndicator).display = running
        except NoMatches:
            pass

    # ------------------------------------------------------------------ actions

    def run_command(self) -> bool:
        args = self.query_one("#args", ArgsArea).text if self._command_def.args_enabled else ""
        return self.invoker.run(args)

    def select_named_args(self, key: str) -> bool:
        if not self._command_def.args_enabled:
            return False
        value = self.named_args.lookup(key)
        if value is None:
            return False
        self.query_one("#args", ArgsArea).load_text(value)
        return True

    def save_named_args(self) -> bool:
        key = self.query_one("#named-args", Input).value
        saved = self.named_args.save(key, self.query_one("#args", ArgsArea).text)
        if saved:
            self._named_args_changed()
        return saved

    def delete_named_args(self) -> bool:
        deleted = self.named_args.delete(self.query_one("#named-args", Input).value)
        if deleted:
            self.clear_args()
            self._named_args_changed()
        return deleted

    def clear_args(self) -> None:
        self.query_one("#args", ArgsArea).load_text("")
        self.query_one("#named-args", Input).value = ""

    def clear_view(self) -> None:
        """Reset args, attachments and output together. Output is kept while running."""
        self.clear_args()
        self.remove_all_attachments()
        self.clear()

    def _named_args_changed(self) -> None:
        if self._on_named_args_changed is not None:
            self._on_named_args_changed(self._command_def.key, self.named_args.as_dict())

    def add_attachment_path(self, path: str) -> str | None:
        path = path.strip()
        if not path:
            return None
        try:
            name = self.invoker.add_attachment_file(path)
        except OSError as err:
            logger.warning("attachment read failed path=%s: %s", path, err)
            self.notify(escape(f"Cannot read {path}: {err}"), severity="error")
            return None
        self._refresh_attachments()
        return name

    def remove_all_attachments(self) -> None:
        self.invoker.remove_all_attachments()
        self._refresh_attachments()

    def _refresh_attachments(self) -> None:
        listing = self.query_one("#attachments", ListView)
        listing.clear()
        for name in self.invoker.attachments.names():
            listing.append(ListItem(Label(name)))

    def save_output(self) -> Path:
        target_dir = self._output_dir or Path.cwd()
        path = target_dir / output_file_name(self._command_def)
        path.write_text(self._buffer.text.strip(), encoding="utf-8")
        self.notify(escape(f"Output saved to {path}"))
        return path

    def copy_output(self) -> None:
        self.app.copy_to_clipboard(self._buffer.text.strip())

    # ------------------------------------------------------------------ events

    def on_button_pressed(self, event: Button.Pressed) -> None:
        handlers = {
            "run": self.run_command,
            "named-save": self.save_named_args,
            "named-delete": self.delete_named_args,
            "named-clear": self.clear_args,
            "clear-view": self.clear_view,
            "attach-add": lambda: self.add_attachment_path(self.query_one("#attach-path", Input).value),
            "attach-clear": self.remove_all_attachments,
            "out-clear": self.clear,
            "out-save": self.save_output,
            "out-copy": self.copy_output,
        }
        handler = handlers.get(event.button.id or "")
        if handler is None:
            return
        event.stop()
        handler()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "named-args":
            self.select_named_args(event.value)
