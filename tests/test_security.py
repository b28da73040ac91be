"""Tests for security middleware: request size limits, request ID, Authorization guard."""

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from app.security import MaxBodySizeMiddleware, RequestIDMiddleware, read_limited_body, require_authorization


# ---------------------------------------------------------------------------
# Helpers - build minimal FastAPI apps with specific middleware for isolation
# ---------------------------------------------------------------------------

def _make_app_with_body_limit(max_bytes: int) -> FastAPI:
    """Create a minimal app with MaxBodySizeMiddleware configured."""
    test_app = FastAPI()
    test_app.add_middleware(MaxBodySizeMiddleware, max_bytes=max_bytes)

    @test_app.post("/api/documents")
    async def upload(request: Request):
        await request.body()
        return {"result": "ok"}

    @test_app.post("/api/orders")
    async def create_order(request: Request):
        await request.body()
        return {"result": "ok"}

    return test_app


def _make_app_with_request_id() -> FastAPI:
    """Create a minimal app with RequestIDMiddleware configured."""
    test_app = FastAPI()
    test_app.add_middleware(RequestIDMiddleware)

    @test_app.get("/health")
    async def health(request: Request):
        return {"ok": True, "request_id": request.state.request_id}

    return test_app


def _make_app_with_auth_guard() -> FastAPI:
    test_app = FastAPI()

    @test_app.get("/protected")
    async def protected(authorization: str = Depends(require_authorization)):
        return {"authorization": authorization}

    return test_app


# ---------------------------------------------------------------------------
# Max Body Size Middleware Tests
# ---------------------------------------------------------------------------

class TestMaxBodySizeMiddleware:
    """Tests for upload size limits on the document upload route."""

    def test_small_upload_allowed(self):
        """Uploads under the limit pass through."""
        client = TestClient(_make_app_with_body_limit(1000))

        resp = client.post(
            "/api/documents",
            content=b"x" * 500,
            headers={"Content-Length": "500"},
        )
        assert resp.status_code == 200

    def test_oversized_upload_rejected(self):
        """Uploads over the limit return 413 in the gateway's error shape."""
        client = TestClient(_make_app_with_body_limit(100))

        resp = client.post(
            "/api/documents",
            content=b"x" * 200,
            headers={"Content-Length": "200"},
        )
        assert resp.status_code == 413
        assert resp.json() == {"detail": "Request body exceeds maximum allowed size (100 bytes)"}

    def test_trailing_slash_is_guarded(self):
        client = TestClient(_make_app_with_body_limit(100))

        resp = client.post(
            "/api/documents/",
            content=b"x" * 200,
            headers={"Content-Length": "200"},
        )
        assert resp.status_code == 413

    def test_orders_not_guarded(self):
        """Order bodies are not subject to the upload limit."""
        client = TestClient(_make_app_with_body_limit(100))

        resp = client.post(
            "/api/orders",
            content=b"x" * 200,
            headers={"Content-Length": "200"},
        )
        assert resp.status_code == 200

    def test_empty_body_passes(self):
        client = TestClient(_make_app_with_body_limit(100))

        resp = client.post("/api/documents", content=b"")
        assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Request ID Middleware Tests
# ---------------------------------------------------------------------------

class TestRequestIDMiddleware:
    """Tests for request ID injection."""

    def test_response_has_request_id_header(self):
        """Every response should include an X-Request-ID header."""
        client = TestClient(_make_app_with_request_id())

        resp = client.get("/health")
        assert resp.status_code == 200
        rid = resp.headers["x-request-id"]
        assert len(rid) == 12  # hex[:12]
        assert resp.json()["request_id"] == rid

    def test_request_ids_are_unique(self):
        """Each request gets a distinct ID."""
        client = TestClient(_make_app_with_request_id())

        ids = {client.get("/health").headers["x-request-id"] for _ in range(10)}
        assert len(ids) == 10

    def test_inbound_request_id_is_reused(self):
        client = TestClient(_make_app_with_request_id())

        resp = client.get("/health", headers={"X-Request-ID": "browser-req.42"})
        assert resp.headers["x-request-id"] == "browser-req.42"

    def test_malformed_inbound_request_id_is_replaced(self):
        """IDs with characters unsafe for log lines are not echoed back."""
        client = TestClient(_make_app_with_request_id())

        resp = client.get("/health", headers={"X-Request-ID": "bad id;rm -rf"})
        rid = resp.headers["x-request-id"]
        assert rid != "bad id;rm -rf"
        assert len(rid) == 12


# ---------------------------------------------------------------------------
# Authorization guard
# ---------------------------------------------------------------------------

class TestRequireAuthorization:
    """The guard only checks presence; the backend decides validity."""

    def test_missing_header_returns_401(self):
        client = TestClient(_make_app_with_auth_guard())

        resp = client.get("/protected")
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Authorization header missing"}

    def test_any_non_blank_value_is_returned_verbatim(self):
        client = TestClient(_make_app_with_auth_guard())

        resp = client.get("/protected", headers={"Authorization": "Token not-even-bearer"})
        assert resp.status_code == 200
        assert resp.json() == {"authorization": "Token not-even-bearer"}


# ---------------------------------------------------------------------------
# Bounded body reads (chunked uploads carry no Content-Length)
# ---------------------------------------------------------------------------

def _make_app_with_limited_read(max_bytes: int) -> FastAPI:
    test_app = FastAPI()

    @test_app.post("/api/documents")
    async def upload(request: Request):
        body = await read_limited_body(request, max_bytes)
        return {"received": len(body)}

    return test_app


class TestReadLimitedBody:
    """The upload route bounds what it reads even without a Content-Length."""

    def test_chunked_body_under_limit(self):
        client = TestClient(_make_app_with_limited_read(100))

        resp = client.post("/api/documents", content=iter([b"x" * 40, b"x" * 40]))
        assert resp.status_code == 200
        assert resp.json() == {"received": 80}

    def test_chunked_body_over_limit_returns_413(self):
        client = TestClient(_make_app_with_limited_read(100))

        resp = client.post("/api/documents", content=iter([b"x" * 60, b"x" * 60]))
        assert "content-length" not in resp.request.headers
        assert resp.status_code == 413
        assert resp.json() == {"detail": "Request body exceeds maximum allowed size (100 bytes)"}


# ---------------------------------------------------------------------------
# Integration: security with the real app
# ---------------------------------------------------------------------------

class TestSecurityIntegration:
    """Test that middleware is wired correctly in the actual app."""

    def test_health_accessible_without_auth(self):
        """The real app's /health endpoint works without auth."""
        from app.main import app

        client = TestClient(app)
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["ok"] is True

    def test_response_includes_request_id(self):
        """The real app attaches X-Request-ID to responses."""
        from app.main import app

        client = TestClient(app)
        resp = client.get("/health")
        assert "x-request-id" in resp.headers

    def test_oversized_upload_rejected_before_auth(self):
        """The size limit applies before the route runs."""
        from app.main import app

        client = TestClient(app)
        resp = client.post(
            "/api/documents",
            content=b"x",
            headers={"Content-Length": "999999999999", "Content-Type": "multipart/form-data; boundary=x"},
        )
        assert resp.status_code == 413
