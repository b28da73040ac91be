"""Request/response schemas for bodies produced by the gateway itself."""

from typing import Any, Literal

from pydantic import BaseModel, Field

FailureCategory = Literal["timeout", "connection_lost", "network_error", "unknown_error"]


class ErrorBody(BaseModel):
    """Uniform error body returned to the browser."""

    detail: Any = Field(description="Human-readable error message (backend detail passed through verbatim)")


class ClassifiedError(BaseModel):
    """Outcome of classifying a transport failure on a proxied call."""

    category: FailureCategory = Field(description="Failure category")
    status_code: int = Field(description="Synthetic HTTP status reported to the browser")
    detail: str = Field(description="Human-readable error message")
    suggestion: str | None = Field(default=None, description="What the user should check before retrying")

    def to_body(self) -> dict[str, Any]:
        """Render the browser-facing body; timeouts carry no error_type."""
        body: dict[str, Any] = {"detail": self.detail}
        if self.category != "timeout":
            body["error_type"] = self.category
        if self.suggestion:
            body["suggestion"] = self.suggestion
        return body


class LogoutResponse(BaseModel):
    """Response for /api/auth/logout."""

    success: bool = Field(description="Whether the session cookie was cleared")
    message: str = Field(description="Human-readable outcome")
