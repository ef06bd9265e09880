"""
Custom exceptions for the graph module.

Exception naming avoids shadowing Python builtins (ConnectionError,
TimeoutError): TransportError covers every failure of the HTTP exchange.
None of these are retried or recovered internally.
"""

from __future__ import annotations


class GraphError(Exception):
    """Base exception for all Cayley exchange errors."""

    pass


class TransportError(GraphError):
    """Raised when the request to Cayley fails.

    Covers connection refused, timeouts imposed by the caller's transport,
    and non-success HTTP status codes. The status code and reason are kept
    so the caller can decide whether to retry.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        reason: str | None = None,
        body: bytes | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with message and failure details.

        Args:
            message: Human-readable error description
            url: Target URL of the request
            status_code: HTTP status code, if a response was received
            reason: HTTP reason phrase, if a response was received
            body: Response body, if a response was received
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.cause = cause


class ResponseDecodeError(GraphError):
    """Raised when a response body is not the expected JSON shape."""

    def __init__(
        self,
        message: str,
        fragment: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with message, offending payload fragment and cause.

        Args:
            message: Human-readable error description
            fragment: The part of the payload that could not be decoded
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.fragment = fragment
        self.cause = cause


class QueryRejectedError(GraphError):
    """Raised when Cayley answers with an ``error`` field instead of results."""

    def __init__(self, message: str, query: str | None = None) -> None:
        super().__init__(message)
        self.query = query
