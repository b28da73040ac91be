"""Classification of transport failures on proxied backend calls."""

import logging
from dataclasses import dataclass

from starlette.responses import JSONResponse

from app.forwarder import (
    BackendConnectionLostError,
    BackendNetworkError,
    BackendTimeoutError,
)
from app.schemas import ClassifiedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailureContext:
    """Wording used when reporting a failed call of one kind."""

    activity: str
    verify_hint: str
    suggestion: str


EXTRACTION_CONTEXT = FailureContext(
    activity="document processing",
    verify_hint="Please check the documents list.",
    suggestion="Check if the document was processed successfully in the documents list",
)

BACKEND_REQUEST_CONTEXT = FailureContext(
    activity="the backend request",
    verify_hint="Please refresh and check the current data.",
    suggestion="Refresh the page to check whether the change was applied",
)


def classify_transport_failure(exc: BaseException, context: FailureContext = EXTRACTION_CONTEXT) -> ClassifiedError:
    """
    Classify an exception raised while waiting for the backend.

    A lost connection is reported separately from other network errors because
    the backend may have finished the work even though the response never
    arrived; the caller is asked to verify state instead of assuming failure.

    Args:
        exc: The exception caught around the backend call
        context: Wording for the kind of call that failed

    Returns:
        ClassifiedError with category, status and messages
    """
    if isinstance(exc, BackendTimeoutError):
        return ClassifiedError(
            category="timeout",
            status_code=408,
            detail=f"Request timeout - {context.activity} is taking too long. Please try again.",
        )
    if isinstance(exc, BackendConnectionLostError):
        return ClassifiedError(
            category="connection_lost",
            status_code=503,
            detail=(
                f"Connection lost during {context.activity}. "
                f"The backend may have completed successfully. {context.verify_hint}"
            ),
            suggestion=context.suggestion,
        )
    if isinstance(exc, BackendNetworkError):
        return ClassifiedError(
            category="network_error",
            status_code=503,
            detail=f"Network error during {context.activity}. Please check your connection and try again.",
        )
    return ClassifiedError(
        category="unknown_error",
        status_code=500,
        detail=f"Internal server error during {context.activity}",
    )


def failure_response(exc: BaseException, context: FailureContext = EXTRACTION_CONTEXT) -> JSONResponse:
    """Classify a failure and render it as the browser-facing JSON response."""
    classified = classify_transport_failure(exc, context)
    logger.error(f"Backend call failed during {context.activity}: {classified.category} ({exc!r})")
    return JSONResponse(status_code=classified.status_code, content=classified.to_body())
