"""Build and run the time server."""

import asyncio
import logging

import uvicorn
from fastapi import FastAPI
from uvicorn.config import LOGGING_CONFIG

from httpstime.api.v1 import api_router
from httpstime.core.clock import Clock, now
from httpstime.core.config import Server
from httpstime.session.acceptor import SessionAcceptor
from httpstime.session.endpoint import SessionEndpoint
from httpstime.utils.general import certificate_fingerprint

log = logging.getLogger(__name__)


def create_app(
    clock: Clock = now,
    endpoint: SessionEndpoint | None = None,
    cert_fingerprint: str | None = None,
) -> FastAPI:
    """
    Create the ASGI application.

    Sessions are only served when an endpoint is given; someone must run a
    `SessionAcceptor` on that endpoint for them to be answered.
    """
    app = FastAPI(title="httpstime", docs_url=None, redoc_url=None, openapi_url=None)

    app.state.clock = clock
    app.state.endpoint = endpoint
    app.state.cert_fingerprint = cert_fingerprint

    app.include_router(api_router)
    return app


class TimeServer:
    """Run uvicorn and the session acceptor side by side."""

    def __init__(self, config: Server, clock: Clock = now) -> None:
        config.check()

        self.config = config
        self.endpoint = SessionEndpoint() if config.sessions else None
        self.acceptor = SessionAcceptor(self.endpoint, clock) if self.endpoint is not None else None

        cert_fingerprint = None
        if config.tls_cert is not None:
            cert_fingerprint = certificate_fingerprint(config.tls_cert)
            log.info("Certificate SHA-256 fingerprint (base64): %s", cert_fingerprint)

        self.app = create_app(clock=clock, endpoint=self.endpoint, cert_fingerprint=cert_fingerprint)
        self.server = uvicorn.Server(
            uvicorn.Config(
                self.app,
                host=self.config.host,
                port=self.config.port,
                uds=self.config.uds,
                ssl_certfile=self.config.tls_cert,
                ssl_keyfile=self.config.tls_key,
                log_config=LOGGING_CONFIG,
            )
        )

    @property
    def started(self) -> bool:
        return self.server.started

    @property
    def port(self) -> int:
        """The bound TCP port, useful when listening on port 0."""
        return self.server.servers[0].sockets[0].getsockname()[1]

    def stop(self) -> None:
        self.server.should_exit = True

    async def serve(self) -> None:
        """
        Serve until uvicorn exits.

        If the acceptor dies, sessions can no longer be admitted: uvicorn is stopped and
        the acceptor's error is raised.
        """
        server = asyncio.create_task(self.server.serve(), name="uvicorn")

        if self.acceptor is None:
            await server
            return

        acceptor = asyncio.create_task(self.acceptor.run(), name="session acceptor")
        await asyncio.wait({server, acceptor}, return_when=asyncio.FIRST_COMPLETED)

        if acceptor.done():
            log.critical("Session acceptor stopped, shutting down")
            self.stop()
            await server
            await self.acceptor.shutdown()
            acceptor.result()
            return

        acceptor.cancel()
        await asyncio.gather(acceptor, return_exceptions=True)
        await self.acceptor.shutdown()
        server.result()
