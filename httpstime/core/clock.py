"""Read the wall clock."""

import time
from collections.abc import Callable

from httpstime.core.errors import ClockError

Clock = Callable[[], float]


def now() -> float:
    """Return the current wall-clock time as fractional seconds since the Unix epoch."""
    timestamp = time.time()

    if timestamp < 0:
        raise ClockError(f"System clock is before the Unix epoch ({timestamp})")

    return timestamp
