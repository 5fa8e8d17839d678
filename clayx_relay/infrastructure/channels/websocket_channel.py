"""
WebSocket channel handle.

Wraps one accepted WebSocket connection behind a bounded outbound queue
drained by a dedicated sender task. Enqueueing never awaits, so pushes and
event deliveries keep their call order on the wire and a slow socket can
never stall the caller.
"""
import asyncio
import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import WebSocket, WebSocketDisconnect

from ...domain.entities.event import RelayEvent
from ...domain.exceptions import ChannelUnavailableException

logger = logging.getLogger(__name__)


class WebSocketChannel:
    """
    Outbound side of a relay socket connection.

    Frames are `{"event": <name>, "data": {...}}` dicts sent as JSON.
    """

    def __init__(
        self,
        websocket: WebSocket,
        label: str = "",
        queue_size: int = 256,
    ):
        """
        Initialize the channel.

        Args:
            websocket: Accepted connection.
            label: Device id or user id, for logs.
            queue_size: Frames buffered before the channel gives up.
        """
        self.websocket = websocket
        self.label = label
        self.channel_id = uuid4().hex[:8]
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._sender: Optional[asyncio.Task] = None
        self._closed = False

        # Stats
        self._frames_sent = 0

    def __repr__(self) -> str:
        return f"WebSocketChannel({self.label}#{self.channel_id})"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def frames_sent(self) -> int:
        return self._frames_sent

    def start(self) -> None:
        """Start the sender task."""
        if self._sender is None:
            self._sender = asyncio.create_task(
                self._send_loop(),
                name=f"ws-sender-{self.label}-{self.channel_id}",
            )

    # =========================================================================
    # Outbound
    # =========================================================================

    def send(self, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Queue a frame for sending.

        Raises:
            ChannelUnavailableException: If the channel is closed or its
                outbound queue is full.
        """
        if self._closed:
            raise ChannelUnavailableException(self.label, f"Channel {self!r} is closed")

        try:
            self._queue.put_nowait({"event": event, "data": data or {}})
        except asyncio.QueueFull:
            self._closed = True
            logger.warning(f"Outbound queue full on {self!r}, dropping channel")
            raise ChannelUnavailableException(self.label, f"Outbound queue full on {self!r}")

    def deliver(self, event: RelayEvent) -> None:
        """Fan-out subscriber entry point."""
        self.send(event.event_type.value, event.data)

    async def push(self, payload: Dict[str, Any]) -> None:
        """Push a command to the device on the other end."""
        self.send("command", payload)

    async def _send_loop(self) -> None:
        try:
            while True:
                frame = await self._queue.get()
                await self.websocket.send_json(frame)
                self._frames_sent += 1
        except (WebSocketDisconnect, RuntimeError, ConnectionError) as e:
            logger.debug(f"Sender for {self!r} stopped: {e}")
        except Exception as e:
            logger.error(f"Sender for {self!r} failed: {e}", exc_info=True)
        finally:
            self._closed = True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Close the connection from the server side."""
        if self._closed:
            return
        self._closed = True
        await self.stop()
        try:
            await self.websocket.close(code=code, reason=reason)
        except RuntimeError as e:
            logger.debug(f"Close of {self!r} ignored: {e}")

    async def stop(self) -> None:
        """Stop the sender task, discarding unsent frames."""
        self._closed = True
        if self._sender is not None:
            sender, self._sender = self._sender, None
            sender.cancel()
            await asyncio.wait([sender])
