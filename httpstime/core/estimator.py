"""Turn client timestamps and a server reading into a sample."""

from httpstime import schemas
from httpstime.core.errors import InvalidSampleError


def make_sample(t1: float, server_time: float, t2: float) -> schemas.SyncSample:
    """
    Combine the client send/receive times with the server's reading.

    A receive time earlier than the send time means the local clock was stepped
    backwards mid-exchange; such a sample is meaningless and is discarded.
    """
    if t2 < t1:
        raise InvalidSampleError(f"Local clock moved backwards ({t1} > {t2})", phase="measure")

    return schemas.SyncSample(t1=t1, server_time=server_time, t2=t2)


def format_sample(target: str, sample: schemas.SyncSample) -> str:
    """Render a sample the way the command line prints it."""
    return "\n".join(
        [
            f"Server: {target}",
            f"Server time: {sample.server_time:.6f}",
            f"Local time:  {sample.local_time:.6f} (RTT-adjusted)",
            f"Offset:      {sample.offset * 1_000:.3f} milliseconds",
            f"RTT:         {sample.rtt * 1_000:.3f} milliseconds",
        ]
    )
