"""Required init file."""

from httpstime.schemas.sync import (
    RESPONSE_SIZE,
    TOKEN_SIZE,
    DatagramRequest,
    DatagramResponse,
    HealthCheckResponse,
    SessionState,
    SyncSample,
    decode_timestamp,
    encode_timestamp,
)

__all__ = []

__all__ += ["RESPONSE_SIZE", "TOKEN_SIZE", "decode_timestamp", "encode_timestamp"]
__all__ += ["DatagramRequest", "DatagramResponse", "SessionState", "SyncSample"]
__all__ += ["HealthCheckResponse"]
