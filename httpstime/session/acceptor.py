"""Admit sessions and give each one its own handler."""

import asyncio
import logging
from typing import NoReturn

from httpstime.core.clock import Clock, now
from httpstime.session.endpoint import SessionEndpoint
from httpstime.session.handler import SessionHandler

log = logging.getLogger(__name__)


class SessionAcceptor:
    """
    Accept sessions forever, spawning one handler task per session.

    Handlers are never awaited here, so a stalled session cannot delay the next one.
    A failing `accept` is not recoverable and ends `run` with the error.
    """

    def __init__(self, endpoint: SessionEndpoint, clock: Clock = now) -> None:
        self.endpoint = endpoint
        self.clock = clock
        self._handlers: set[asyncio.Task[None]] = set()

    @property
    def active(self) -> int:
        """Number of sessions currently being served."""
        return len(self._handlers)

    async def run(self) -> NoReturn:
        log.info("Accepting sessions")

        while True:
            session = await self.endpoint.accept()
            handler = SessionHandler(session, self.clock)

            # The loop only keeps weak references to tasks.
            task = asyncio.create_task(self._handle(handler), name=f"session {session.remote_address}")
            self._handlers.add(task)
            task.add_done_callback(self._handlers.discard)

    @staticmethod
    async def _handle(handler: SessionHandler) -> None:
        try:
            await handler.run()
        except Exception:
            log.exception("Session error (%s)", handler.session.remote_address)

    async def shutdown(self) -> None:
        """Cancel every running handler."""
        for task in self._handlers:
            task.cancel()

        await asyncio.gather(*self._handlers, return_exceptions=True)
