"""Translation of backend responses into browser-facing responses."""

import json
import logging
from typing import Any

import httpx
from starlette.responses import JSONResponse, Response

from app.schemas import ErrorBody

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

INTERNAL_ERROR_DETAIL = "Internal server error"


def error_response(status_code: int, detail: Any) -> JSONResponse:
    """Build a uniform ``{detail}`` error response."""
    return JSONResponse(status_code=status_code, content=ErrorBody(detail=detail).model_dump())


def preflight_response() -> Response:
    """Answer a CORS preflight without contacting the backend."""
    return Response(status_code=200, headers=dict(CORS_HEADERS))


def translate_backend_response(
    upstream: httpx.Response,
    fallback_detail: str,
    cors: bool = False,
) -> Response:
    """
    Map a backend response onto the response sent to the browser.

    Success bodies pass through unchanged with the backend status. Error bodies
    are reduced to ``{detail}``: the backend's own detail when it sent one,
    otherwise ``fallback_detail``; the backend status is kept. An error body
    that is not JSON is reported as a 500.

    Args:
        upstream: Response received from the backend
        fallback_detail: Message used when the backend error has no detail
        cors: Attach the CORS header set to successful responses

    Returns:
        Response for the browser
    """
    if not upstream.is_success:
        try:
            payload = upstream.json()
        except (json.JSONDecodeError, ValueError):
            logger.error(f"Backend returned {upstream.status_code} with a non-JSON body")
            return error_response(500, INTERNAL_ERROR_DETAIL)

        detail = payload.get("detail") if isinstance(payload, dict) else None
        return error_response(upstream.status_code, detail or fallback_detail)

    headers = dict(CORS_HEADERS) if cors else None

    if not upstream.content:
        return Response(status_code=upstream.status_code, headers=headers)

    try:
        payload = upstream.json()
    except (json.JSONDecodeError, ValueError):
        # Non-JSON response - pass through as-is
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type", "application/octet-stream"),
            headers=headers,
        )

    return JSONResponse(content=payload, status_code=upstream.status_code, headers=headers)
