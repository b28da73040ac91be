"""Request forwarding to the order/document backend API."""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

import httpx

from app.logging import current_request_id

logger = logging.getLogger(__name__)


class BackendTransportError(Exception):
    """Raised when no HTTP response could be obtained from the backend."""

    def __init__(self, message: str, upstream: str):
        self.message = message
        self.upstream = upstream
        super().__init__(message)


class BackendTimeoutError(BackendTransportError):
    """Raised when the call's deadline fired before the backend answered."""


class BackendConnectionLostError(BackendTransportError):
    """Raised when the connection was closed or reset while the call was in flight."""


class BackendNetworkError(BackendTransportError):
    """Raised for any other transport failure (refused connection, DNS, TLS, ...)."""


@dataclass(frozen=True)
class JsonBody:
    """A JSON value re-serialized for the backend."""

    value: Any


@dataclass(frozen=True)
class MultipartBody:
    """A multipart/form-data body relayed byte for byte, boundary included."""

    content: bytes
    content_type: str


@dataclass(frozen=True)
class LoginForm:
    """Credentials sent to the backend login endpoint as multipart form fields."""

    username: str
    password: str


Body = Union[JsonBody, MultipartBody, LoginForm]


@dataclass
class ProxyRequest:
    """An outbound call to the backend, as built by a route handler."""

    method: str
    path: str
    authorization: str | None = None
    body: Body | None = None
    query: list[tuple[str, str]] = field(default_factory=list)
    timeout_s: float | None = None


def build_backend_request(client: httpx.AsyncClient, proxy_request: ProxyRequest, base_url: str) -> httpx.Request:
    """
    Build the outbound httpx request for a proxied call.

    JSON bodies are serialized with an application/json content type. Multipart
    bodies keep their inbound bytes and content type. Login credentials are
    encoded as multipart form fields. Query parameters keep their order.
    """
    url = f"{base_url.rstrip('/')}{proxy_request.path}"
    headers: dict[str, str] = {}
    if proxy_request.authorization:
        headers["Authorization"] = proxy_request.authorization
    rid = current_request_id()
    if rid:
        headers["X-Request-ID"] = rid

    kwargs: dict[str, Any] = {}
    body = proxy_request.body
    if isinstance(body, JsonBody):
        headers["Content-Type"] = "application/json"
        kwargs["content"] = json.dumps(body.value).encode("utf-8")
    elif isinstance(body, MultipartBody):
        headers["Content-Type"] = body.content_type
        kwargs["content"] = body.content
    elif isinstance(body, LoginForm):
        # (None, value) parts carry no filename, so they arrive as plain form fields
        kwargs["files"] = {
            "username": (None, body.username.encode("utf-8")),
            "password": (None, body.password.encode("utf-8")),
        }

    return client.build_request(
        proxy_request.method,
        url,
        params=proxy_request.query or None,
        headers=headers,
        **kwargs,
    )


async def forward_to_backend(proxy_request: ProxyRequest, base_url: str) -> httpx.Response:
    """
    Send a proxied call to the backend.

    Args:
        proxy_request: The call to make
        base_url: Base URL of the backend

    Returns:
        httpx.Response object from the backend, whatever its status

    Raises:
        BackendTimeoutError: If a phase timeout or the overall deadline fired
        BackendConnectionLostError: If the connection dropped mid-flight
        BackendNetworkError: If the backend could not be reached
    """
    url = f"{base_url.rstrip('/')}{proxy_request.path}"

    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(proxy_request.timeout_s)) as client:
            request = build_backend_request(client, proxy_request, base_url)
            logger.debug(f"Forwarding {proxy_request.method} to {url}")
            # httpx limits each phase separately; the whole call also gets one deadline
            return await asyncio.wait_for(client.send(request), timeout=proxy_request.timeout_s)

    except (httpx.TimeoutException, asyncio.TimeoutError) as e:
        logger.error(f"Timeout calling backend {url}: {e!r}")
        raise BackendTimeoutError(
            "Backend did not respond in time",
            upstream=base_url,
        ) from e

    except (httpx.RemoteProtocolError, httpx.ReadError, httpx.WriteError) as e:
        logger.error(f"Connection to backend {url} lost mid-request: {e!r}")
        raise BackendConnectionLostError(
            f"Connection to backend closed unexpectedly: {str(e)}",
            upstream=base_url,
        ) from e

    except httpx.TransportError as e:
        logger.error(f"Network error calling backend {url}: {e!r}")
        raise BackendNetworkError(
            f"Connection to backend failed: {str(e)}",
            upstream=base_url,
        ) from e
