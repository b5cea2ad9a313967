"""Websocket transport feeding the shared broadcast channel.

This module is a STABLE BOUNDARY. It owns the live connection.
Import as: import cmd_workbench.pipeline.transport

// [LAW:single-enforcer] The transport is the only producer of the global
//   fault message; it sends exactly one per connection attempt.
// [LAW:locality-or-seam] All websockets library calls are isolated here.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from cmd_workbench.core.message import CommandMessage, MessageFormatError, global_fault, parse_message
from cmd_workbench.pipeline.channel import BroadcastChannel, ChannelClosedError, SentCallback

logger = logging.getLogger(__name__)

_Outbound = tuple[CommandMessage, SentCallback | None]


class WebSocketTransport:
    """Single duplex connection shared by every command panel.

    run() is a long-lived coroutine; schedule it as an async worker on the
    app's event loop. It returns when the connection ends.
    """

    def __init__(
        self,
        url: str,
        channel: BroadcastChannel,
        *,
        connect: Callable[..., object] = websockets.connect,
        open_timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._channel = channel
        self._connect = connect
        self._open_timeout = open_timeout
        self._ws = None
        self._outbound: asyncio.Queue[_Outbound] | None = None
        self._stopping = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return self._ws is not None

    def _enqueue(self, message: CommandMessage, on_sent: SentCallback | None) -> None:
        if self._outbound is None:
            raise ChannelClosedError("Not connected to the server")
        self._outbound.put_nowait((message, on_sent))

    async def run(self) -> None:
        """Connect, pump frames until the connection ends, then report the fault.

        A stop() issued before or during the handshake closes the connection
        as soon as it opens.
        """
        reason = "connection closed"
        try:
            async with self._connect(self._url, open_timeout=self._open_timeout) as ws:
                self._ws = ws
                if self._stopping:
                    await ws.close()
                    return
                self._outbound = asyncio.Queue()
                self._channel.attach(self._enqueue)
                logger.info("connected url=%s", self._url)
                writer = asyncio.create_task(self._write_loop(ws, self._outbound))
                try:
                    await self._read_loop(ws)
                finally:
                    writer.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await writer
                close_reason = getattr(ws, "close_reason", "") or ""
                if close_reason:
                    reason = f"connection closed ({close_reason})"
        except ConnectionClosed as err:
            reason = f"connection closed: {err}"
        except (OSError, asyncio.TimeoutError, WebSocketException) as err:
            reason = f"connection failed: {err}"
        finally:
            self._ws = None
            self._outbound = None
            self._channel.detach()
            if self._stopping:
                reason = "connection closed by client"
            # One stop() ends one run; the next run() starts fresh.
            self._stopping = False
            logger.warning("transport down url=%s reason=%s", self._url, reason)
            self._channel.deliver(global_fault(reason))

    async def _read_loop(self, ws) -> None:
        async for raw in ws:
            try:
                message = parse_message(raw)
            except MessageFormatError as err:
                logger.warning("dropping unparseable frame: %s", err)
                continue
            self._channel.deliver(message)

    async def _write_loop(self, ws, queue: asyncio.Queue[_Outbound]) -> None:
        while True:
            message, on_sent = await queue.get()
            try:
                await ws.send(message.to_json())
            except ConnectionClosed as err:
                # The read loop sees the same closure and ends the run.
                logger.warning("write failed reference=%s: %s", message.reference, err)
                return
            if on_sent is None:
                continue
            try:
                on_sent()
            except Exception:
                logger.exception("on_sent callback failed reference=%s", message.reference)

    async def stop(self) -> None:
        """Close the connection; running invokers get the global fault.

        Called before run() has connected, it makes that run close straight away.
        """
        self._stopping = True
        ws = self._ws
        if ws is not None:
            await ws.close()
