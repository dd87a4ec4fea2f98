"""Expose the server clock."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, WebSocket, status

from httpstime import schemas
from httpstime.api.deps import get_cert_fingerprint, get_clock, get_endpoint, sessions_enabled
from httpstime.core.clock import Clock
from httpstime.core.config import TIME_HEADER, TIME_PATH
from httpstime.core.errors import ClockError, TransportError
from httpstime.core.responder import respond
from httpstime.session.endpoint import SessionEndpoint, WebSocketSession

log = logging.getLogger(__name__)

router = APIRouter()


@router.api_route(TIME_PATH, methods=["GET", "HEAD"])
def server_time(clock: Annotated[Clock, Depends(get_clock)]) -> Response:
    """
    Return the server time in the x-httpstime header.

    The body is empty so HEAD and GET cost the same.
    """
    try:
        timestamp = respond(clock)
    except ClockError:
        log.exception("Unable to read the clock")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(headers={TIME_HEADER: str(timestamp)})


@router.websocket(TIME_PATH)
async def time_session(ws: WebSocket, endpoint: Annotated[SessionEndpoint, Depends(get_endpoint)]) -> None:
    """
    Open a persistent session on the well-known path.

    Each binary message is a datagram answered by the session acceptor's handlers.
    """
    await ws.accept()
    session = WebSocketSession(ws)

    try:
        await session.serve(endpoint)
    except TransportError as e:
        log.warning("Rejected session from %s: %s", session.remote_address, e)


@router.get("/healthz")
def health_check(
    sessions: Annotated[bool, Depends(sessions_enabled)],
    cert_fingerprint: Annotated[str | None, Depends(get_cert_fingerprint)],
) -> schemas.HealthCheckResponse:
    """Report whether sessions are served and the certificate fingerprint clients can pin."""
    return schemas.HealthCheckResponse(sessions=sessions, cert_fingerprint=cert_fingerprint)
