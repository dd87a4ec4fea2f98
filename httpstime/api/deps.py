"""FastAPI dependencies."""

import logging

from fastapi import WebSocketException, status
from fastapi.requests import HTTPConnection

from httpstime.core.clock import Clock
from httpstime.session.endpoint import SessionEndpoint

log = logging.getLogger(__name__)


def get_clock(conn: HTTPConnection) -> Clock:
    """Return the clock the server answers with."""
    return conn.app.state.clock


def sessions_enabled(conn: HTTPConnection) -> bool:
    return conn.app.state.endpoint is not None


def get_endpoint(conn: HTTPConnection) -> SessionEndpoint:
    """Return the endpoint accepted sessions are handed to."""
    endpoint = conn.app.state.endpoint

    if endpoint is None:
        log.debug("Refusing session from %s: sessions are disabled", conn.client)
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Sessions are disabled")

    return endpoint


def get_cert_fingerprint(conn: HTTPConnection) -> str | None:
    """
    Return the base64 SHA-256 fingerprint of the server certificate.

    The fingerprint is computed once at startup and stored on the application.
    """
    return conn.app.state.cert_fingerprint
