"""Request ID and upload size middleware, and the Authorization header guard."""

import logging
import time

from fastapi import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.logging import accept_request_id, request_id_var

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every request and log request lifecycle.

    An ``X-Request-ID`` sent by the caller is reused when it is well-formed, so
    browser, gateway and backend logs can be correlated.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = accept_request_id(request.headers.get("x-request-id"))
        request.state.request_id = rid
        token = request_id_var.set(rid)
        start = time.perf_counter()
        try:
            logger.info("%s %s", request.method, request.url.path)
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "%s %s -> %s (%.0f ms)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
            response.headers["X-Request-ID"] = rid
            return response
        finally:
            request_id_var.reset(token)


class MaxBodySizeMiddleware(BaseHTTPMiddleware):
    """Reject document uploads whose Content-Length exceeds a configured limit.

    Uploads without a Content-Length (chunked) are bounded by :func:`read_limited_body`
    while the route reads them.
    """

    def __init__(self, app, max_bytes: int) -> None:  # noqa: ANN001
        super().__init__(app)
        self.max_bytes = max_bytes
        self._guarded_paths = {"/api/documents"}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "POST" and request.url.path.rstrip("/") in self._guarded_paths:
            content_length = request.headers.get("content-length")
            if content_length is not None:
                try:
                    too_large = int(content_length) > self.max_bytes
                except ValueError:
                    too_large = False  # non-integer content-length; let the handler deal with it
                if too_large:
                    return JSONResponse(
                        status_code=413,
                        content={"detail": body_too_large_detail(self.max_bytes)},
                    )

        return await call_next(request)


AUTH_MISSING_DETAIL = "Authorization header missing"


def require_authorization(request: Request) -> str:
    """FastAPI dependency returning the inbound Authorization header.

    Routes that depend on it answer 401 before any backend call is made when
    the header is absent or blank.
    """
    value = request.headers.get("authorization")
    if not value or not value.strip():
        raise HTTPException(status_code=401, detail=AUTH_MISSING_DETAIL)
    return value


def body_too_large_detail(max_bytes: int) -> str:
    return f"Request body exceeds maximum allowed size ({max_bytes} bytes)"


async def read_limited_body(request: Request, max_bytes: int) -> bytes:
    """Read the request body, answering 413 as soon as it grows past ``max_bytes``."""
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise HTTPException(status_code=413, detail=body_too_large_detail(max_bytes))
        chunks.append(chunk)
    return b"".join(chunks)
