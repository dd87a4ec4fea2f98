"""Test the single-shot HTTP estimator."""

import httpx
import pytest

from httpstime.client.http import measure_http
from httpstime.core.config import TIME_HEADER
from httpstime.core.errors import InvalidSampleError, ProtocolError, TransportError
from httpstime.server import create_app
from tests.fakes import scripted_clock
from tests.settings import BASE_URL, SERVER_TIME, TIME_URL

pytestmark = pytest.mark.anyio


def mock_client(response: httpx.Response) -> httpx.AsyncClient:
    """Return a client whose every request gets `response`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response))


async def test_end_to_end() -> None:
    """Test a measurement against the real app."""
    app = create_app(clock=lambda: SERVER_TIME)
    clock = scripted_clock([999.995, 1000.005])

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL) as client:
        sample = await measure_http(TIME_URL, clock=clock, client=client)

    assert sample.server_time == SERVER_TIME
    assert sample.offset == pytest.approx(0.0, abs=1e-9)
    assert sample.rtt == pytest.approx(0.010)


async def test_warm_up_request() -> None:
    """Test that a throwaway request precedes the timed one."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, headers={TIME_HEADER: "12.5"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sample = await measure_http(TIME_URL, clock=scripted_clock([10.0, 11.0]), client=client)

    assert len(requests) == 2
    assert all(request.method == "GET" for request in requests)
    assert sample.offset == -2.0


async def test_error_status() -> None:
    """Test that a non-2xx status is a protocol error."""
    async with mock_client(httpx.Response(500)) as client:
        with pytest.raises(ProtocolError) as exc_info:
            await measure_http(TIME_URL, clock=scripted_clock([1.0, 2.0]), client=client)

    assert exc_info.value.phase == "status"


async def test_missing_header() -> None:
    """Test that a response without the time header is rejected."""
    async with mock_client(httpx.Response(200)) as client:
        with pytest.raises(ProtocolError, match=TIME_HEADER):
            await measure_http(TIME_URL, clock=scripted_clock([1.0, 2.0]), client=client)


@pytest.mark.parametrize("value", ["", "noon", "nan", "inf"])
async def test_unparseable_header(value: str) -> None:
    """Test that the header must be a finite decimal number."""
    async with mock_client(httpx.Response(200, headers={TIME_HEADER: value})) as client:
        with pytest.raises(ProtocolError) as exc_info:
            await measure_http(TIME_URL, clock=scripted_clock([1.0, 2.0]), client=client)

    assert exc_info.value.phase == "parse"


async def test_connect_error() -> None:
    """Test that connection failures report the connect phase."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError) as exc_info:
            await measure_http(TIME_URL, client=client)

    assert exc_info.value.phase == "connect"
    assert str(exc_info.value).startswith("connect: ")


async def test_clock_moved_backwards() -> None:
    """Test that a sample with t2 < t1 is discarded."""
    async with mock_client(httpx.Response(200, headers={TIME_HEADER: "5.0"})) as client:
        with pytest.raises(InvalidSampleError):
            await measure_http(TIME_URL, clock=scripted_clock([5.0, 4.0]), client=client)


@pytest.mark.parametrize(
    ("error", "phase"),
    [
        (httpx.WriteError, "send"),
        (httpx.ReadTimeout, "receive"),
        (httpx.RemoteProtocolError, "receive"),
    ],
)
async def test_timed_request_error(error: type[httpx.TransportError], phase: str) -> None:
    """Test that a failure of the timed request names the phase it failed in."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if len(requests) > 1:
            raise error("boom", request=request)
        return httpx.Response(200, headers={TIME_HEADER: "12.5"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError) as exc_info:
            await measure_http(TIME_URL, client=client)

    assert exc_info.value.phase == phase
