"""Measure the clock offset over a persistent session."""

import asyncio
import functools
import hmac
import logging
import math
import ssl
from types import TracebackType
from typing import Any, Self

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import WebSocketException

from httpstime import schemas
from httpstime.core.clock import Clock, now
from httpstime.core.errors import ProtocolError, TransportError
from httpstime.core.estimator import make_sample
from httpstime.utils.general import fingerprint, parse_fingerprint

log = logging.getLogger(__name__)


def verify_pin(ssl_object: ssl.SSLObject | None, pin: bytes) -> None:
    """Raise unless the peer certificate hashes to `pin`."""
    der = ssl_object.getpeercert(binary_form=True) if ssl_object is not None else None

    if der is None or not hmac.compare_digest(fingerprint(der), pin):
        raise TransportError("Server certificate does not match the pinned fingerprint", phase="handshake")


class PinnedConnection(ClientConnection):
    """A client connection that checks the certificate pin before sending the upgrade request."""

    def __init__(self, *args: Any, pin: bytes, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.pin = pin

    async def handshake(self, *args: Any, **kwargs: Any) -> None:
        verify_pin(self.transport.get_extra_info("ssl_object"), self.pin)
        await super().handshake(*args, **kwargs)


class SessionClient:
    """
    A persistent session to a time server.

    Every call to `measure` is an independent sample: one datagram out, one datagram back.
    Datagrams carry no error frame, so a request the server dropped looks exactly like a
    lost one and surfaces as a receive timeout.

    With `cert_hash` the server certificate is authenticated by its SHA-256 fingerprint
    instead of a certificate authority.
    """

    def __init__(self, url: str, cert_hash: str | None = None, clock: Clock = now, timeout: float = 5.0) -> None:
        self.url = url
        self.clock = clock
        self.timeout = timeout
        self.pin = parse_fingerprint(cert_hash) if cert_hash is not None else None

        self._ws: ClientConnection | None = None

    @property
    def secure(self) -> bool:
        return self.url.startswith("wss://")

    def _connect_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}

        if self.pin is not None:
            # The pin replaces chain validation and is checked once TLS is up, before the upgrade.
            kwargs["create_connection"] = functools.partial(PinnedConnection, pin=self.pin)

        if self.secure:
            context = ssl.create_default_context()
            if self.pin is not None:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            kwargs["ssl"] = context

        return kwargs

    async def connect(self) -> None:
        try:
            self._ws = await connect(self.url, open_timeout=self.timeout, **self._connect_kwargs())
        except (OSError, TimeoutError, WebSocketException) as e:
            raise TransportError(f"Failed to connect to {self.url}: {e!r}", phase="connect") from e

        log.debug("Connected to %s", self.url)

    async def measure(self) -> schemas.SyncSample:
        """Take one sample."""
        if self._ws is None:
            raise TransportError("Session is not connected", phase="send")

        t1 = self.clock()
        request = schemas.DatagramRequest.from_timestamp(t1)

        try:
            await self._ws.send(request.to_bytes())
        except (OSError, WebSocketException) as e:
            raise TransportError(f"Failed to send datagram: {e!r}", phase="send") from e

        try:
            async with asyncio.timeout(self.timeout):
                data = await self._ws.recv()
        except TimeoutError as e:
            raise TransportError(f"No response within {self.timeout:g}s", phase="receive") from e
        except (OSError, WebSocketException) as e:
            raise TransportError(f"Failed to receive datagram: {e!r}", phase="receive") from e

        t2 = self.clock()

        if isinstance(data, str):
            raise ProtocolError("Server sent a text message instead of a datagram", phase="parse")

        response = schemas.DatagramResponse.from_bytes(data)
        if response.token != request.token:
            raise ProtocolError("Server response echoes a different request", phase="parse")

        if not math.isfinite(response.server_time):
            raise ProtocolError(f"Server time is not a finite number: {response.server_time!r}", phase="parse")

        return make_sample(t1, response.server_time, t2)

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


async def measure_session(
    url: str,
    cert_hash: str | None = None,
    clock: Clock = now,
    timeout: float = 5.0,
) -> schemas.SyncSample:
    """Open a session, take one sample and close it."""
    async with SessionClient(url, cert_hash=cert_hash, clock=clock, timeout=timeout) as client:
        return await client.measure()
