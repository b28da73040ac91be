"""Exceptions raised by the dashboard client."""

from typing import Any


class DashboardError(Exception):
    """Base exception for all dashboard client errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ApiError(DashboardError):
    """Raised when the gateway answers with a non-2xx status.

    ``message`` is the normalized, user-facing text; ``payload`` keeps the
    decoded body as received.
    """

    def __init__(
        self,
        message: str,
        status: int,
        code: str | None = None,
        details: Any = None,
        payload: Any = None,
    ):
        self.status = status
        self.code = code
        self.details = details
        self.payload = payload
        super().__init__(message)


class ApiUnreachableError(DashboardError):
    """Raised when the gateway cannot be reached."""

    pass


class ApiTimeoutError(DashboardError):
    """Raised when a request to the gateway times out."""

    pass
