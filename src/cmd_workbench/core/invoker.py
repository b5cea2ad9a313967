"""Per-panel command invoker: one token, one busy/idle state machine.

// [LAW:single-enforcer] The running flag is the only concurrency guard;
//   panels disable their run control from on_running_changed, nothing else
//   locks.
// [LAW:dataflow-not-control-flow] Every failure reaches the caller as text in
//   the output sink; no exception leaves this module.

State transitions:
    IDLE    --run()------------------------------> RUNNING
    RUNNING --chunk (own token)------------------> RUNNING   append bodydata
    RUNNING --success (own token)----------------> IDLE      append finished line
    RUNNING --error (own token)------------------> IDLE      append error text
    RUNNING --global fault (any invoker)---------> IDLE      append connection line
    IDLE    --anything---------------------------> IDLE      no-op
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from cmd_workbench.core.attachments import AttachmentBundle
from cmd_workbench.core.commands import CommandDef
from cmd_workbench.core.message import CommandMessage, Delivery, classify
from cmd_workbench.core.output import NL, ClearableOutputSink, OutputSink
from cmd_workbench.core.tokens import new_token
from cmd_workbench.pipeline.channel import BroadcastChannel, ChannelError

logger = logging.getLogger(__name__)

HELP_ARGS = "-h"
RUN_KEY = "enter"


class InvokerState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class CommandInvoker:
    """Controller behind one command panel.

    The listener is registered once at construction, keyed by this invoker's
    token, and released by close().
    """

    def __init__(
        self,
        channel: BroadcastChannel,
        command_def: CommandDef,
        sink: OutputSink,
        *,
        owner_id: str,
        token: str | None = None,
        token_factory: Callable[[str], str] = new_token,
        on_running_changed: Callable[[bool], None] | None = None,
    ) -> None:
        self._channel = channel
        self._command_def = command_def
        self._sink = sink
        self._owner_id = owner_id
        self._token = token or token_factory(owner_id)
        self._on_running_changed = on_running_changed
        self._state = InvokerState.IDLE
        self._in_flight: CommandMessage | None = None
        self._closed = False
        self.attachments = AttachmentBundle()
        self._subscription = channel.add_listener(self.on_message, reference=self._token)
        logger.debug("invoker created owner=%s token=%s", owner_id, self._token)

    # ------------------------------------------------------------------ properties

    @property
    def token(self) -> str:
        return self._token

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def command_def(self) -> CommandDef:
        return self._command_def

    @property
    def state(self) -> InvokerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is InvokerState.RUNNING

    @property
    def in_flight(self) -> CommandMessage | None:
        return self._in_flight

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ outbound

    def build_message(self, args_src: str = "") -> CommandMessage:
        """Build the outbound request, draining the attachment bundle into it."""
        return CommandMessage(
            reference=self._token,
            command=self._command_def.command,
            function_module=self._command_def.script,
            args_src=args_src.strip(),
            attachments=self.attachments.as_dict(),
        )

    def run(self, args_src: str = "") -> bool:
        """Send one command. No-op returning False while a command is in flight."""
        if self._closed:
            logger.debug("run ignored: invoker closed owner=%s", self._owner_id)
            return False
        if self.is_running:
            logger.debug("run ignored: already running token=%s", self._token)
            return False

        if isinstance(self._sink, ClearableOutputSink):
            self._sink.clear()
        message = self.build_message(args_src)
        self._in_flight = message
        self._set_state(InvokerState.RUNNING)

        try:
            self._channel.send(message, self._on_sent)
        except ChannelError as err:
            logger.warning("send failed token=%s: %s", self._token, err)
            self._finish(NL + str(err))
            return False
        return True

    def handle_args_key(self, key: str, args_text: str) -> bool:
        """Run on Enter when the argument text is exactly -h. Returns True if it ran."""
        if not self._command_def.args_enabled:
            return False
        if key != RUN_KEY or args_text.strip() != HELP_ARGS:
            return False
        return self.run(args_text)

    def _on_sent(self) -> None:
        logger.debug("handed off token=%s", self._token)

    # ------------------------------------------------------------------ inbound

    def on_message(self, message: CommandMessage) -> None:
        delivery = classify(message, self._token)
        if delivery is Delivery.UNRELATED:
            return
        if not self.is_running:
            # Duplicate terminal, late chunk or fault with nothing in flight.
            logger.debug("ignored %s while idle token=%s", delivery.value, self._token)
            return

        if delivery is Delivery.CHUNK:
            self._sink.append(message.bodydata)
        elif delivery is Delivery.SUCCESS:
            self._finish(
                NL + f"Command finished: [{message.normalized_status}] [{self._command_def.display_name}]"
            )
        elif delivery is Delivery.ERROR:
            self._finish(NL + message.error)
        elif delivery is Delivery.GLOBAL_FAULT:
            self._finish(NL + f"Connection Error [{message.error}] the central connection was closed.")

    def _finish(self, line: str) -> None:
        self._sink.append(line)
        self._in_flight = None
        self._set_state(InvokerState.IDLE)

    def _set_state(self, state: InvokerState) -> None:
        if state is self._state:
            return
        self._state = state
        logger.info("invoker %s token=%s", state.value, self._token)
        if self._on_running_changed is not None:
            self._on_running_changed(state is InvokerState.RUNNING)

    # ------------------------------------------------------------------ attachments

    def add_attachment(self, name: str, data: str | bytes) -> None:
        self.attachments.add(name, data)

    def add_attachment_file(self, path: str | Path) -> str:
        return self.attachments.add_file(path)

    def remove_attachment(self, name: str) -> bool:
        return self.attachments.remove(name)

    def remove_all_attachments(self) -> None:
        self.attachments.clear()

    # ------------------------------------------------------------------ lifecycle

    def close(self) -> None:
        """Release the channel subscription. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._subscription.release()
        logger.debug("invoker closed owner=%s token=%s", self._owner_id, self._token)
