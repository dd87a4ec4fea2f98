"""Persistent sessions and the channel that hands them to the acceptor."""

import asyncio
import contextlib
import logging
from typing import Protocol

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from httpstime import schemas
from httpstime.core.errors import TransportError

log = logging.getLogger(__name__)

# Datagrams read ahead of the handler before the pump stops reading from the socket.
DATAGRAM_BACKLOG = 16


class Session(Protocol):
    """A persistent connection carrying datagrams in both directions."""

    remote_address: str

    @property
    def state(self) -> schemas.SessionState: ...

    async def receive_datagram(self) -> bytes: ...

    async def send_datagram(self, data: bytes) -> None: ...

    async def closed(self) -> None: ...

    def close(self) -> None: ...


class SessionEndpoint:
    """
    A channel of accepted sessions.

    The transport offers sessions as their handshakes complete and the acceptor drains them.
    Closing the endpoint makes the next `accept` fail, which the acceptor treats as fatal.
    """

    def __init__(self) -> None:
        self._sessions: asyncio.Queue[Session | None] = asyncio.Queue()
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def offer(self, session: Session) -> None:
        """Queue a newly established session for the acceptor."""
        if self._closed:
            raise TransportError("Session endpoint is closed", phase="accept")

        self._sessions.put_nowait(session)

    async def accept(self) -> Session:
        """Wait for the next session."""
        session = await self._sessions.get()

        if session is None:
            raise TransportError("Session endpoint is closed", phase="accept")

        return session

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._sessions.put_nowait(None)


class WebSocketSession:
    """Carry datagrams over a WebSocket, one binary message per datagram."""

    def __init__(self, ws: WebSocket) -> None:
        self.ws = ws
        self.remote_address = f"{ws.client.host}:{ws.client.port}" if ws.client else "unknown"

        self._datagrams: asyncio.Queue[bytes] = asyncio.Queue(maxsize=DATAGRAM_BACKLOG)
        self._closed = asyncio.Event()

    @property
    def state(self) -> schemas.SessionState:
        return schemas.SessionState.CLOSED if self._closed.is_set() else schemas.SessionState.ACTIVE

    async def receive_datagram(self) -> bytes:
        return await self._datagrams.get()

    async def send_datagram(self, data: bytes) -> None:
        if self._closed.is_set():
            raise TransportError("Session is closed", phase="send")

        try:
            await self.ws.send_bytes(data)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            self.close()
            raise TransportError(f"Failed to send datagram: {e!r}", phase="send") from e

    async def closed(self) -> None:
        await self._closed.wait()

    def close(self) -> None:
        self._closed.set()

    async def pump(self) -> None:
        """Queue inbound binary messages until the peer goes away."""
        try:
            while True:
                message = await self.ws.receive()

                if message["type"] == "websocket.disconnect":
                    break

                data = message.get("bytes")
                if data is None:
                    log.debug("Dropping text message from %s", self.remote_address)
                    continue

                await self._datagrams.put(data)
        finally:
            self.close()

    async def serve(self, endpoint: SessionEndpoint) -> None:
        """Hand the session over to the endpoint and keep the connection open until it closes."""
        pump = asyncio.create_task(self.pump())
        closed = asyncio.create_task(self.closed())

        try:
            endpoint.offer(self)
            await asyncio.wait({pump, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            self.close()
            pump.cancel()
            closed.cancel()
            for result in await asyncio.gather(pump, closed, return_exceptions=True):
                if isinstance(result, Exception):
                    log.warning("Session %s ended with a transport error: %r", self.remote_address, result)

            if self.ws.client_state == WebSocketState.CONNECTED:
                with contextlib.suppress(RuntimeError, OSError):
                    await self.ws.close()
