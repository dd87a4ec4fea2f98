"""Answer the datagrams of one persistent session."""

import asyncio
import logging

from httpstime import schemas
from httpstime.core.clock import Clock, now
from httpstime.core.errors import TransportError
from httpstime.core.responder import reply_to_datagram
from httpstime.session.endpoint import Session

log = logging.getLogger(__name__)


class SessionHandler:
    """
    Serve one session until it closes.

    Each iteration races the next datagram against the close signal. When both are ready
    at once the close wins: the datagram is dropped and nothing more is sent.
    """

    def __init__(self, session: Session, clock: Clock = now) -> None:
        self.session = session
        self.clock = clock

    @property
    def is_closed(self) -> bool:
        return self.session.state is schemas.SessionState.CLOSED

    async def run(self) -> None:
        """Echo each datagram's token with the server time, one datagram at a time."""
        remote = self.session.remote_address
        log.info("New session accepted from %s", remote)

        closed = asyncio.ensure_future(self.session.closed())
        datagram: asyncio.Future[bytes] | None = None

        try:
            while True:
                datagram = asyncio.ensure_future(self.session.receive_datagram())
                await asyncio.wait({datagram, closed}, return_when=asyncio.FIRST_COMPLETED)

                if closed.done() or self.is_closed:
                    break

                reply = reply_to_datagram(datagram.result(), self.clock)
                datagram = None

                if reply is None:
                    continue

                if self.is_closed:
                    break

                try:
                    await self.session.send_datagram(reply)
                except TransportError:
                    log.exception("Failed to answer session %s", remote)
                    break
        finally:
            for future in (datagram, closed):
                if future is not None and not future.done():
                    future.cancel()

            self.session.close()

        log.info("Session with %s closed", remote)
