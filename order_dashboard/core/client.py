"""Async client for the order dashboard gateway."""

import json
import logging
from typing import Any

import httpx

from order_dashboard.core.config import ClientConfig
from order_dashboard.core.errors import extract_error_details
from order_dashboard.core.exceptions import ApiError, ApiTimeoutError, ApiUnreachableError

logger = logging.getLogger(__name__)


def _params(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


class DashboardClient:
    """
    Client for the gateway's ``/api/...`` routes.

    Usage:
        >>> async with DashboardClient(ClientConfig()) as client:
        ...     await client.login("alice", "secret")
        ...     orders = await client.get_orders(limit=20)

    Every failed call raises :class:`ApiError` carrying the normalized message.
    A 401 also forgets the stored token.
    """

    def __init__(self, config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self.token = config.token
        self._http = httpx.AsyncClient(
            base_url=config.api_url.rstrip("/"),
            timeout=httpx.Timeout(config.timeout_s),
            transport=transport,
        )

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling {method} {path}: {e!r}")
            raise ApiTimeoutError(f"Request to {path} timed out") from e
        except httpx.TransportError as e:
            logger.error(f"Could not reach gateway for {method} {path}: {e!r}")
            raise ApiUnreachableError(f"Connection to gateway failed: {str(e)}") from e

        try:
            payload = response.json() if response.content else None
        except (json.JSONDecodeError, ValueError):
            payload = None

        if response.is_success:
            return payload

        if response.status_code == 401:
            # Token expired or invalid
            self.token = None

        normalized = extract_error_details(response.status_code, payload)
        logger.debug(f"{method} {path} failed: {normalized}")
        raise ApiError(
            normalized.message,
            status=normalized.status,
            code=normalized.code,
            details=normalized.details,
            payload=payload,
        )

    # Auth

    async def login(self, username: str, password: str) -> dict[str, Any]:
        """Log in and keep the returned access token for later calls."""
        data = await self._request("POST", "/api/auth/login", json={"username": username, "password": password})
        if isinstance(data, dict) and data.get("access_token"):
            self.token = data["access_token"]
        return data

    async def register(self, email: str, username: str, password: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/api/auth/register",
            json={"email": email, "username": username, "password": password},
        )

    async def logout(self) -> None:
        """Forget the token and clear the gateway session cookie."""
        self.token = None
        await self._request("POST", "/api/auth/logout")

    # Orders

    async def get_orders(
        self,
        skip: int | None = None,
        limit: int | None = None,
        status_filter: str | None = None,
        patient_name: str | None = None,
    ) -> Any:
        params = _params(skip=skip, limit=limit, status_filter=status_filter, patient_name=patient_name)
        return await self._request("GET", "/api/orders", params=params)

    async def get_order(self, order_id: int) -> Any:
        return await self._request("GET", f"/api/orders/{order_id}")

    async def create_order(self, order_data: dict[str, Any]) -> Any:
        return await self._request("POST", "/api/orders", json=order_data)

    async def update_order(self, order_id: int, order_data: dict[str, Any]) -> Any:
        return await self._request("PUT", f"/api/orders/{order_id}", json=order_data)

    async def delete_order(self, order_id: int) -> Any:
        return await self._request("DELETE", f"/api/orders/{order_id}")

    # Documents

    async def get_documents(
        self,
        skip: int | None = None,
        limit: int | None = None,
        status_filter: str | None = None,
    ) -> Any:
        params = _params(skip=skip, limit=limit, status_filter=status_filter)
        return await self._request("GET", "/api/documents", params=params)

    async def get_document(self, document_id: int) -> Any:
        return await self._request("GET", f"/api/documents/{document_id}")

    async def upload_document(
        self,
        filename: str,
        content: bytes,
        content_type: str = "application/pdf",
    ) -> Any:
        return await self._request("POST", "/api/documents", files={"file": (filename, content, content_type)})

    async def extract_document_data(self, document_id: int) -> Any:
        """Start extraction; this can block for as long as the backend works on the document."""
        return await self._request("POST", f"/api/documents/{document_id}/extract")

    async def delete_document(self, document_id: int) -> Any:
        return await self._request("DELETE", f"/api/documents/{document_id}")
