"""Exceptions raised while serving or measuring time."""


class HttpsTimeError(Exception):
    """Base class for every error raised by httpstime."""


class ClockError(HttpsTimeError):
    """The local wall clock could not be read (e.g. it is before the Unix epoch)."""


class ConfigurationError(HttpsTimeError):
    """Invalid configuration, rejected before any network activity."""


class EstimatorError(HttpsTimeError):
    """A time measurement failed."""

    def __init__(self, message: str, phase: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.phase = phase

    def __str__(self) -> str:
        if self.phase:
            return f"{self.phase}: {self.message}"
        return self.message


class TransportError(EstimatorError):
    """The underlying connection failed."""


class ProtocolError(EstimatorError):
    """The peer answered with something that does not follow the protocol."""


class InvalidSampleError(EstimatorError):
    """The local clock moved backwards during a measurement."""
