"""Schemas for syncing time."""

import struct
from enum import Enum
from typing import Self

from pydantic import BaseModel, Field, computed_field

from httpstime.core.errors import ProtocolError

# Every value on the wire is a little-endian IEEE-754 double.
TIMESTAMP = struct.Struct("<d")
TOKEN_SIZE = TIMESTAMP.size
RESPONSE_SIZE = 2 * TIMESTAMP.size


def encode_timestamp(timestamp: float) -> bytes:
    """Serialize a timestamp as an 8-byte little-endian double."""
    return TIMESTAMP.pack(timestamp)


def decode_timestamp(data: bytes) -> float:
    """Deserialize an 8-byte little-endian double."""
    return TIMESTAMP.unpack(data)[0]


class SessionState(str, Enum):
    """Lifecycle of a persistent session."""

    ACTIVE = "active"
    CLOSED = "closed"


class DatagramRequest(BaseModel):
    """
    A datagram sent by the client.

    The token is opaque to the server: it is copied into the response and never parsed.
    """

    token: bytes = Field(min_length=TOKEN_SIZE, max_length=TOKEN_SIZE)

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Read a request, ignoring trailing bytes."""
        if len(data) < TOKEN_SIZE:
            raise ProtocolError(f"Datagram too short: {len(data)} bytes", phase="parse")

        return cls(token=bytes(data[:TOKEN_SIZE]))

    @classmethod
    def from_timestamp(cls, timestamp: float) -> Self:
        """Build a request whose token is the client's send time."""
        return cls(token=encode_timestamp(timestamp))

    def to_bytes(self) -> bytes:
        return self.token


class DatagramResponse(BaseModel):
    """A datagram sent by the server: the echoed token followed by the server time."""

    token: bytes = Field(min_length=TOKEN_SIZE, max_length=TOKEN_SIZE)
    server_time: float

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Read a response, ignoring trailing bytes."""
        if len(data) < RESPONSE_SIZE:
            raise ProtocolError(f"Server response too short: {len(data)} bytes", phase="parse")

        return cls(
            token=bytes(data[:TOKEN_SIZE]),
            server_time=decode_timestamp(data[TOKEN_SIZE:RESPONSE_SIZE]),
        )

    def to_bytes(self) -> bytes:
        return self.token + encode_timestamp(self.server_time)


class SyncSample(BaseModel):
    """
    One two-timestamp measurement.

    t1          = client send time
    server_time = server clock when the request was answered
    t2          = client receive time

    offset = (t1 + t2) / 2 - server_time
    rtt    = t2 - t1
    """

    t1: float
    server_time: float
    t2: float

    @computed_field
    @property
    def rtt(self) -> float:
        """Round-trip time in seconds."""
        return self.t2 - self.t1

    @computed_field
    @property
    def local_time(self) -> float:
        """Local time at the midpoint of the exchange."""
        return (self.t1 + self.t2) / 2

    @computed_field
    @property
    def offset(self) -> float:
        """Positive when the local clock is ahead of the server."""
        return self.local_time - self.server_time


class HealthCheckResponse(BaseModel):
    """HealthCheckResponse."""

    status: str = "ok"
    sessions: bool
    cert_fingerprint: str | None = None
