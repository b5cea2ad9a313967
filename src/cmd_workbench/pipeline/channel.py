"""Shared broadcast channel between the transport and command invokers.

This module is a STABLE BOUNDARY. It holds live listener references.

// [LAW:single-enforcer] BroadcastChannel is the sole fan-out point for
//   inbound messages; the transport only calls deliver().
// [LAW:locality-or-seam] The outbound writer is attached by the transport,
//   so invokers never see the connection object.

Listeners registered with a reference are indexed by it, so a normal
response reaches only its own invoker (plus wildcard listeners). The global
fault reference reaches every listener.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from cmd_workbench.core.message import CommandMessage

logger = logging.getLogger(__name__)

MessageListener = Callable[[CommandMessage], None]
SentCallback = Callable[[], None]
OutboundWriter = Callable[[CommandMessage, SentCallback | None], None]


class ChannelError(Exception):
    """Base error for outbound channel failures."""


class ChannelClosedError(ChannelError):
    """No connection is attached to the channel."""


class Subscription:
    """Handle for one registered listener. Release it when its owner goes away."""

    __slots__ = ("_channel", "callback", "reference", "_released")

    def __init__(self, channel: BroadcastChannel, callback: MessageListener, reference: str | None) -> None:
        self._channel = channel
        self.callback = callback
        self.reference = reference
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._channel._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class BroadcastChannel:
    """Fan-out registry for inbound messages plus the outbound send seam."""

    def __init__(self) -> None:
        self._keyed: dict[str, list[Subscription]] = {}
        self._wildcard: list[Subscription] = []
        self._writer: OutboundWriter | None = None

    # ------------------------------------------------------------------ outbound

    def attach(self, writer: OutboundWriter) -> None:
        self._writer = writer

    def detach(self) -> None:
        self._writer = None

    @property
    def connected(self) -> bool:
        return self._writer is not None

    def send(self, message: CommandMessage, on_sent: SentCallback | None = None) -> None:
        """Hand a message to the attached writer.

        on_sent fires once the write is handed off, not when a reply arrives.

        Raises:
            ChannelClosedError: no writer is attached.
        """
        writer = self._writer
        if writer is None:
            raise ChannelClosedError("Not connected to the server")
        logger.debug("send reference=%s command=%s", message.reference, message.command)
        writer(message, on_sent)

    # ------------------------------------------------------------------ inbound

    def add_listener(self, callback: MessageListener, reference: str | None = None) -> Subscription:
        """Register a listener; with a reference it only sees that reference
        and global faults, without one it sees everything."""
        sub = Subscription(self, callback, reference)
        if reference is None:
            self._wildcard.append(sub)
        else:
            self._keyed.setdefault(reference, []).append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        if sub.reference is None:
            if sub in self._wildcard:
                self._wildcard.remove(sub)
            return
        subs = self._keyed.get(sub.reference)
        if subs is None:
            return
        if sub in subs:
            subs.remove(sub)
        if not subs:
            del self._keyed[sub.reference]

    @property
    def listener_count(self) -> int:
        return len(self._wildcard) + sum(len(subs) for subs in self._keyed.values())

    def _targets(self, message: CommandMessage) -> tuple[Subscription, ...]:
        if message.is_global_fault:
            keyed = [sub for subs in self._keyed.values() for sub in subs]
        else:
            keyed = list(self._keyed.get(message.reference, ()))
        # Snapshot: listeners may release themselves while being called.
        return tuple(keyed + self._wildcard)

    def deliver(self, message: CommandMessage) -> int:
        """Dispatch one inbound message synchronously. Returns listeners called."""
        targets = self._targets(message)
        called = 0
        for sub in targets:
            if sub.released:
                continue
            try:
                sub.callback(message)
            except Exception:
                logger.exception("listener failed for reference=%s", message.reference)
            called += 1
        return called
