from __future__ import annotations


class BridgeError(Exception):
    """Base error for a failed bridge phase."""


class MergeIncompatibilityError(BridgeError):
    """Raised when two JSON values cannot be combined."""


class SerializationError(BridgeError):
    """Raised when the outgoing payload cannot be encoded."""


class TransportError(BridgeError):
    """Raised when the adapter request fails or returns an error status."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(BridgeError):
    """Raised when the adapter response is not a valid bridge result."""
