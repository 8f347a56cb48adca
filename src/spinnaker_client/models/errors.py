"""
Error taxonomy for the Spinnaker API client.

Configuration, request building, transport, upstream rejections and
stage decoding each fail with their own type so callers can tell a
broken credential from a flaky network from a malformed document.
"""
from typing import Any, Dict, Optional


class SpinnakerClientError(Exception):
    """Base class for every error raised by the client."""


class ConfigError(SpinnakerClientError):
    """Malformed or unreadable credential material. Raised at client construction."""


class BuildError(SpinnakerClientError):
    """A request could not be built (bad target address or unserializable payload)."""


class TransportError(SpinnakerClientError):
    """Network, TLS or body decoding failure. Never retried."""


class DecodeError(SpinnakerClientError):
    """A document does not match the shape of the resource it should decode into."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidArgumentError(SpinnakerClientError, ValueError):
    """A caller passed an argument the client cannot work with."""


class ServiceError(SpinnakerClientError):
    """Structured rejection returned by the Spinnaker API."""

    def __init__(self,
                 status: int,
                 message: str = "",
                 error: str = "",
                 exception: str = "",
                 timestamp: Any = None,
                 fields: Optional[Dict[str, Any]] = None,
                 http_status: Optional[int] = None):
        super().__init__(message or error or f"HTTP {status}")
        self.status = status
        self.message = message
        self.error = error
        self.exception = exception
        self.timestamp = timestamp
        self.fields = dict(fields or {})
        self.http_status = http_status if http_status is not None else status

    @classmethod
    def from_envelope(cls, envelope: Dict[str, Any], http_status: int) -> 'ServiceError':
        """
        Build an error from the upstream error envelope.

        The envelope's own ``status`` wins when it is an integer; otherwise
        the HTTP status code of the response is used. Every key of the
        envelope is preserved in ``fields``.
        """
        status = envelope.get("status")
        if not isinstance(status, int) or isinstance(status, bool):
            status = http_status

        return cls(
            status=status,
            message=_as_text(envelope.get("message")),
            error=_as_text(envelope.get("error")),
            exception=_as_text(envelope.get("exception")),
            timestamp=envelope.get("timestamp"),
            fields=envelope,
            http_status=http_status
        )

    def __str__(self):
        text = self.message or self.error or "no message"
        return f"Spinnaker API error {self.status}: {text}"

    def __repr__(self):
        return f"ServiceError(status={self.status!r}, message={self.message!r})"


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
