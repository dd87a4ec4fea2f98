"""Measure the clock offset with single-shot HTTP requests."""

import logging
import math

import httpx

from httpstime import schemas
from httpstime.core.clock import Clock, now
from httpstime.core.config import TIME_HEADER
from httpstime.core.errors import ProtocolError, TransportError
from httpstime.core.estimator import make_sample

log = logging.getLogger(__name__)


async def measure_http(
    url: str,
    clock: Clock = now,
    timeout: float = 5.0,
    client: httpx.AsyncClient | None = None,
) -> schemas.SyncSample:
    """
    Take one sample against the well-known time path at `url`.

    A throwaway request is sent first so that connection setup (DNS, TCP, TLS) falls
    outside the timed window. Only the second request is timed.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await _measure(client, url, clock)

    return await _measure(client, url, clock)


async def _measure(client: httpx.AsyncClient, url: str, clock: Clock) -> schemas.SyncSample:
    try:
        await client.get(url)
    except httpx.HTTPError as e:
        raise TransportError(f"Failed to connect to {url}: {e!r}", phase="connect") from e

    t1 = clock()
    try:
        response = await client.get(url)
    except (httpx.ConnectError, httpx.ConnectTimeout) as e:
        raise TransportError(f"Failed to connect to {url}: {e!r}", phase="connect") from e
    except (httpx.WriteError, httpx.WriteTimeout) as e:
        raise TransportError(f"Failed to send request to {url}: {e!r}", phase="send") from e
    except httpx.HTTPError as e:
        raise TransportError(f"Failed to receive response from {url}: {e!r}", phase="receive") from e
    t2 = clock()

    if not response.is_success:
        raise ProtocolError(f"Server returned error: {response.status_code}", phase="status")

    value = response.headers.get(TIME_HEADER)
    if value is None:
        raise ProtocolError(f"Server response missing {TIME_HEADER} header", phase="parse")

    try:
        server_time = float(value)
    except ValueError as e:
        raise ProtocolError(f"Failed to parse server time {value!r}", phase="parse") from e

    if not math.isfinite(server_time):
        raise ProtocolError(f"Server time is not a finite number: {value!r}", phase="parse")

    log.debug("t1=%f server_time=%f t2=%f", t1, server_time, t2)
    return make_sample(t1, server_time, t2)
