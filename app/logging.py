"""Structured logging setup with request ID support."""

import logging
import re
import sys
import uuid
from contextvars import ContextVar

# Context variable to hold the current request ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

_INBOUND_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestIDFilter(logging.Filter):
    """Inject request_id from contextvars into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


def generate_request_id() -> str:
    """Generate a short unique request ID."""
    return uuid.uuid4().hex[:12]


def accept_request_id(inbound: str | None) -> str:
    """Reuse a caller-supplied request ID when it is safe to log, otherwise generate one."""
    if inbound and _INBOUND_ID_RE.match(inbound):
        return inbound
    return generate_request_id()


def current_request_id() -> str | None:
    """Return the request ID bound to the running request, if any."""
    rid = request_id_var.get("-")
    return None if rid == "-" else rid


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging for the gateway.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s - %(message)s"))
    handler.addFilter(RequestIDFilter())

    root = logging.getLogger()
    root.setLevel(numeric_level)
    # Remove existing handlers to avoid duplicates on reload
    root.handlers.clear()
    root.addHandler(handler)

    # RequestIDMiddleware already logs one line per request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
    logging.getLogger("httpcore").setLevel(max(numeric_level, logging.WARNING))
