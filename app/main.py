"""FastAPI application entry point for the order dashboard gateway."""

import json
import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from app import __version__
from app.config import DEFAULT_HOST_CANDIDATES, get_settings
from app.failures import BACKEND_REQUEST_CONTEXT, EXTRACTION_CONTEXT, failure_response
from app.forwarder import (
    BackendTransportError,
    JsonBody,
    LoginForm,
    MultipartBody,
    ProxyRequest,
    forward_to_backend,
)
from app.logging import setup_logging
from app.prober import HostProber
from app.routing import CallKind, select_backend_url, select_timeout
from app.schemas import LogoutResponse
from app.security import MaxBodySizeMiddleware, RequestIDMiddleware, read_limited_body, require_authorization
from app.translator import (
    INTERNAL_ERROR_DETAIL,
    error_response,
    preflight_response,
    translate_backend_response,
)

logger = logging.getLogger(__name__)


def _load_settings_safe():
    """Load settings, returning None when config is unavailable (e.g. tests)."""
    try:
        return get_settings()
    except ValueError:
        return None


def create_app() -> FastAPI:
    """Build and return the FastAPI application with middleware and the host prober."""
    settings = _load_settings_safe()

    if settings is not None:
        setup_logging(settings.log_level)

    application = FastAPI(
        title="Order Dashboard Gateway",
        description="Proxy between the order/document dashboard and its backend API",
        version=__version__,
        servers=[{"url": settings.public_api_url}] if settings else None,
    )

    # One prober per process; it only probes once BACKEND_HOST_PROBE is on and a call needs it
    if settings is not None:
        application.state.host_prober = HostProber(
            settings.backend_host_candidates_list,
            timeout_s=settings.host_probe_timeout_s,
        )
    else:
        application.state.host_prober = HostProber(DEFAULT_HOST_CANDIDATES.split(","))

    # Middleware stack: the last one added is the outermost
    application.add_middleware(
        MaxBodySizeMiddleware,
        max_bytes=settings.max_upload_bytes if settings else 50_000_000,
    )
    application.add_middleware(RequestIDMiddleware)

    return application


app = create_app()


async def _read_json(request: Request) -> Any:
    body_bytes = await request.body()
    try:
        return json.loads(body_bytes)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON in request body")


async def _relay(
    request: Request,
    proxy_request: ProxyRequest,
    fallback_detail: str,
    *,
    cors: bool = False,
    kind: CallKind = CallKind.DEFAULT,
) -> Response:
    """Send a proxied call and turn whatever happens into the browser response."""
    settings = get_settings()
    context = EXTRACTION_CONTEXT if kind is CallKind.EXTRACTION else BACKEND_REQUEST_CONTEXT

    try:
        base_url = await select_backend_url(settings, request.app.state.host_prober)
        proxy_request.timeout_s = select_timeout(kind, settings)
        upstream = await forward_to_backend(proxy_request, base_url)
        return translate_backend_response(upstream, fallback_detail, cors=cors)

    except BackendTransportError as e:
        return failure_response(e, context)
    except Exception as e:
        if kind is CallKind.EXTRACTION:
            logger.exception(f"Unexpected error during document extraction: {e}")
            return failure_response(e, context)
        logger.exception(f"Unexpected error proxying {proxy_request.method} {proxy_request.path}: {e}")
        return error_response(500, INTERNAL_ERROR_DETAIL)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"ok": True, "version": __version__}


# --- Auth ---


@app.post("/api/auth/login")
async def login(request: Request) -> Response:
    """Exchange username/password for a token; the backend expects them as form fields."""
    body = await _read_json(request)
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")

    form = LoginForm(
        username=str(body.get("username") or ""),
        password=str(body.get("password") or ""),
    )
    return await _relay(
        request,
        ProxyRequest(method="POST", path="/api/v1/auth/login", body=form),
        "Login failed",
    )


@app.post("/api/auth/register")
async def register(request: Request) -> Response:
    """Create an account."""
    body = await _read_json(request)
    return await _relay(
        request,
        ProxyRequest(method="POST", path="/api/v1/auth/register", body=JsonBody(body)),
        "Registration failed",
    )


@app.post("/api/auth/logout")
async def logout() -> Response:
    """Drop the session cookie. The backend keeps no session, so it is not contacted."""
    response = JSONResponse(content=LogoutResponse(success=True, message="Logout successful").model_dump())
    response.delete_cookie("auth-token")
    return response


# --- Documents ---


@app.options("/api/documents")
async def documents_preflight() -> Response:
    return preflight_response()


@app.get("/api/documents")
async def list_documents(request: Request, authorization: str = Depends(require_authorization)) -> Response:
    """List documents; query parameters are passed through in order."""
    return await _relay(
        request,
        ProxyRequest(
            method="GET",
            path="/api/v1/documents",
            authorization=authorization,
            query=list(request.query_params.multi_items()),
        ),
        "Failed to get documents",
        cors=True,
    )


@app.post("/api/documents")
async def upload_document(request: Request, authorization: str = Depends(require_authorization)) -> Response:
    """Upload a document. The multipart body is relayed byte for byte."""
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise HTTPException(status_code=400, detail="Expected a multipart/form-data upload")

    content = await read_limited_body(request, get_settings().max_upload_bytes)
    return await _relay(
        request,
        ProxyRequest(
            method="POST",
            path="/api/v1/documents/upload",
            authorization=authorization,
            body=MultipartBody(content=content, content_type=content_type),
        ),
        "Failed to upload document",
        cors=True,
    )


@app.get("/api/documents/{document_id}")
async def get_document(
    document_id: str,
    request: Request,
    authorization: str = Depends(require_authorization),
) -> Response:
    return await _relay(
        request,
        ProxyRequest(method="GET", path=f"/api/v1/documents/{document_id}", authorization=authorization),
        "Failed to get document",
    )


@app.delete("/api/documents/{document_id}")
async def delete_document(
    document_id: str,
    request: Request,
    authorization: str = Depends(require_authorization),
) -> Response:
    return await _relay(
        request,
        ProxyRequest(method="DELETE", path=f"/api/v1/documents/{document_id}", authorization=authorization),
        "Failed to delete document",
    )


@app.post("/api/documents/{document_id}/extract")
async def extract_document(
    document_id: str,
    request: Request,
    authorization: str = Depends(require_authorization),
) -> Response:
    """
    Run data extraction on a document.

    Extraction can take many minutes, so this call gets the extended timeout
    and its transport failures are classified for the user: a lost connection
    means the backend may still have finished the work.
    """
    return await _relay(
        request,
        ProxyRequest(method="POST", path=f"/api/v1/documents/{document_id}/extract", authorization=authorization),
        "Failed to extract document data",
        kind=CallKind.EXTRACTION,
    )


# --- Orders ---


@app.options("/api/orders")
async def orders_preflight() -> Response:
    return preflight_response()


@app.get("/api/orders")
async def list_orders(request: Request, authorization: str = Depends(require_authorization)) -> Response:
    """List orders; query parameters are passed through in order."""
    return await _relay(
        request,
        ProxyRequest(
            method="GET",
            path="/api/v1/orders/",
            authorization=authorization,
            query=list(request.query_params.multi_items()),
        ),
        "Failed to get orders",
        cors=True,
    )


@app.post("/api/orders")
async def create_order(request: Request, authorization: str = Depends(require_authorization)) -> Response:
    body = await _read_json(request)
    return await _relay(
        request,
        ProxyRequest(method="POST", path="/api/v1/orders/", authorization=authorization, body=JsonBody(body)),
        "Failed to create order",
        cors=True,
    )


@app.options("/api/orders/{order_id}")
async def order_preflight(order_id: str) -> Response:
    return preflight_response()


@app.get("/api/orders/{order_id}")
async def get_order(order_id: str, request: Request, authorization: str = Depends(require_authorization)) -> Response:
    return await _relay(
        request,
        ProxyRequest(method="GET", path=f"/api/v1/orders/{order_id}", authorization=authorization),
        "Failed to get order",
        cors=True,
    )


@app.put("/api/orders/{order_id}")
async def update_order(
    order_id: str,
    request: Request,
    authorization: str = Depends(require_authorization),
) -> Response:
    body = await _read_json(request)
    return await _relay(
        request,
        ProxyRequest(method="PUT", path=f"/api/v1/orders/{order_id}", authorization=authorization, body=JsonBody(body)),
        "Failed to update order",
        cors=True,
    )


@app.delete("/api/orders/{order_id}")
async def delete_order(
    order_id: str,
    request: Request,
    authorization: str = Depends(require_authorization),
) -> Response:
    return await _relay(
        request,
        ProxyRequest(method="DELETE", path=f"/api/v1/orders/{order_id}", authorization=authorization),
        "Failed to delete order",
        cors=True,
    )
