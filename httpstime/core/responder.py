"""Answer time requests from either transport."""

import logging

from httpstime import schemas
from httpstime.core.clock import Clock, now
from httpstime.core.errors import ClockError, ProtocolError

log = logging.getLogger(__name__)


def respond(clock: Clock = now) -> float:
    """Return one fresh reading of the server clock."""
    return clock()


def reply_to_datagram(datagram: bytes, clock: Clock = now) -> bytes | None:
    """
    Build the answer to one session datagram.

    Returns None when the datagram must be dropped: the session channel has no error frame,
    so malformed requests and clock failures are never answered.
    """
    try:
        request = schemas.DatagramRequest.from_bytes(datagram)
    except ProtocolError as e:
        log.debug("Dropping datagram: %s", e)
        return None

    try:
        server_time = respond(clock)
    except ClockError:
        log.exception("Dropping datagram: unable to read the clock")
        return None

    return schemas.DatagramResponse(token=request.token, server_time=server_time).to_bytes()
