"""Exception hierarchy for postman-core.

Request-level failures are split by where they happen: before the network
(RequestValidationError), on the wire (TransportError), or while encoding
the answer (SerializationError). The boundary layer turns the first two into
status_code 0 responses.
"""

from __future__ import annotations


class PostmanCoreError(Exception):
    """Base class for postman-core errors."""


class InputError(PostmanCoreError):
    """Raised when a request document is null, not UTF-8, or not JSON."""


class RequestValidationError(PostmanCoreError):
    """Raised when a parsed request cannot be turned into an HTTP call."""


class MissingUrlError(RequestValidationError):
    """Raised when a request has no url."""

    def __init__(self) -> None:
        super().__init__("URL is required")


class MissingHostError(RequestValidationError):
    """Raised when a structured url has no host."""

    def __init__(self) -> None:
        super().__init__("Host is required")


class UnsupportedMethodError(RequestValidationError):
    """Raised when the request method is outside the supported set."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Unsupported HTTP method: {method}")


class TransportError(PostmanCoreError):
    """Raised when sending fails (DNS, connect, TLS, timeout) or the
    response body cannot be decoded."""


class SerializationError(PostmanCoreError):
    """Raised when a response cannot be encoded as JSON."""
