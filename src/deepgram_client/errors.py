"""
Error types raised by the Deepgram client.

Every failure surfaced by the library is an instance of ``DeepgramError`` so
callers can catch the whole family at once, or branch on the concrete kind.
"""

from typing import Any, Optional


class DeepgramError(Exception):
    """
    Base error for all client errors.

    Attributes:
        message (str): Human readable description.
        reason (Any): Underlying cause (transport reason, payload, ...).
    """

    def __init__(self, message: str, reason: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason

    def __str__(self) -> str:
        if self.reason is None:
            return self.message
        return f"{self.message}: {self.reason!r}"


class AuthenticationError(DeepgramError):
    """No usable credential could be resolved."""


class ApiError(DeepgramError):
    """A REST call returned a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body

    @classmethod
    def from_response(cls, status_code: int, response_body: str) -> "ApiError":
        return cls("API request failed", status_code, response_body)

    def __str__(self) -> str:
        return f"{self.message} (status={self.status_code}): {self.response_body}"


class ArgumentError(DeepgramError, ValueError):
    """Malformed caller input (wrong type, empty text, missing field)."""

    def __init__(
        self,
        message: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        if self.expected is None and self.actual is None:
            return self.message
        return f"{self.message} (expected {self.expected}, got {self.actual})"


class HttpError(DeepgramError):
    """Network-level failure of a REST call."""


class WebSocketError(DeepgramError):
    """Protocol or transport failure of a live session."""

    def __init__(self, message: str, reason: Any = None, code: Optional[int] = None) -> None:
        super().__init__(message, reason)
        self.code = code


class JsonError(DeepgramError):
    """A payload could not be decoded."""

    def __init__(self, message: str, data: Any = None, reason: Any = None) -> None:
        super().__init__(message, reason)
        self.data = data


class ConfigError(DeepgramError):
    """Invalid client configuration."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key

    def __str__(self) -> str:
        return f"{self.message} (key={self.key})" if self.key else self.message


class RequestTimeoutError(DeepgramError, TimeoutError):
    """An operation exceeded its configured timeout."""

    def __init__(self, message: str, timeout: Optional[float] = None) -> None:
        super().__init__(message)
        self.timeout = timeout

    def __str__(self) -> str:
        return f"{self.message} (timeout={self.timeout}s)" if self.timeout else self.message
