"""Simple configuration for the dashboard client."""

from dataclasses import dataclass


@dataclass
class ClientConfig:
    """Configuration for the dashboard client.

    Args:
        api_url: Base URL of the gateway serving the ``/api/...`` routes
        timeout_s: Request timeout in seconds; None means no timeout, since
            document extraction may run for many minutes
        token: Bearer token sent with every request, if already known
    """

    api_url: str = "http://127.0.0.1:3000"
    timeout_s: float | None = None
    token: str | None = None
