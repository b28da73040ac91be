"""Order Dashboard - async client for the order dashboard gateway.

Wraps the gateway's ``/api/...`` routes and turns every error body the backend
or gateway can produce into a single readable message.

Usage:
    >>> from order_dashboard import ClientConfig, DashboardClient
    >>>
    >>> async with DashboardClient(ClientConfig(api_url="http://localhost:3000")) as client:
    ...     await client.login("alice", "secret")
    ...     documents = await client.get_documents(limit=10)
"""

__version__ = "0.1.0"

# Public library API exports
from order_dashboard.core.client import DashboardClient
from order_dashboard.core.config import ClientConfig
from order_dashboard.core.errors import (
    NormalizedError,
    extract_error_details,
    extract_error_message,
    format_validation_errors,
    get_field_errors,
    is_validation_error,
)

# Export exceptions for library users
from order_dashboard.core.exceptions import (
    ApiError,
    ApiTimeoutError,
    ApiUnreachableError,
    DashboardError,
)

__all__ = [
    "__version__",
    # Configuration
    "ClientConfig",
    # Client
    "DashboardClient",
    # Error normalization
    "NormalizedError",
    "extract_error_message",
    "extract_error_details",
    "is_validation_error",
    "get_field_errors",
    "format_validation_errors",
    # Exceptions
    "DashboardError",
    "ApiError",
    "ApiTimeoutError",
    "ApiUnreachableError",
]
