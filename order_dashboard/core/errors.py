"""Normalization of backend error bodies into one user-facing message.

The backend and the gateway answer with three error shapes:

* structured: ``{"error": {"code", "message", "details"}}``, where validation
  failures put ``details.field_errors`` (a list of ``{field, message}``),
* flat detail: ``{"detail": "..."}``,
* flat message: ``{"message": "..."}``.

Bodies are parsed into :class:`ErrorPayload` first and the message is then
picked by a fixed precedence, so the rest of the client never probes raw
dictionaries.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."
VALIDATION_FAILED_MESSAGE = "Validation failed. Please check your input."

STATUS_MESSAGES = {
    400: "Bad request. Please check your input.",
    401: "Authentication failed. Please check your credentials.",
    403: "Access denied. You don't have permission to perform this action.",
    404: "Resource not found.",
    409: "Conflict. The resource already exists.",
    422: VALIDATION_FAILED_MESSAGE,
    429: "Too many requests. Please wait before trying again.",
    500: "Internal server error. Please try again later.",
    502: "Bad gateway. Service temporarily unavailable.",
    503: "Service unavailable. Please try again later.",
}


class FieldError(BaseModel):
    """One validation failure tied to a named input field."""

    model_config = ConfigDict(extra="allow")

    field: Any = None
    message: str = ""
    type: Any = None
    value: Any = None


class StructuredError(BaseModel):
    """The ``error`` object of a structured error body."""

    model_config = ConfigDict(extra="allow")

    code: Any = None
    message: Any = None
    details: Any = None
    timestamp: Any = None
    request_id: Any = None

    @property
    def field_errors(self) -> list[FieldError] | None:
        """Field errors when ``details.field_errors`` is a list, else None."""
        if not isinstance(self.details, dict):
            return None
        raw = self.details.get("field_errors")
        if not isinstance(raw, list):
            return None
        errors = []
        for item in raw:
            if isinstance(item, dict):
                try:
                    errors.append(FieldError.model_validate(item))
                except ValidationError:
                    continue
        return errors


class ErrorPayload(BaseModel):
    """Any error body, with each known shape as an optional part."""

    model_config = ConfigDict(extra="allow")

    error: StructuredError | None = None
    detail: Any = None
    message: Any = None


@dataclass
class NormalizedError:
    """A failed call reduced to what the UI shows."""

    message: str
    status: int
    code: str | None = None
    details: Any = None


def parse_error_payload(body: Any) -> ErrorPayload:
    """Parse a decoded error body, treating anything unrecognizable as empty."""
    if not isinstance(body, dict):
        return ErrorPayload()
    try:
        return ErrorPayload.model_validate(body)
    except ValidationError:
        # e.g. "error" is a plain string; keep the flat fields
        return ErrorPayload(detail=body.get("detail"), message=body.get("message"))


def _non_empty(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def extract_error_message(status: int, body: Any = None) -> str:
    """
    Pick the user-facing message for a failed call.

    Precedence: structured ``error.message``, then the first field error's
    message, then flat ``detail``, then flat ``message``, then a default for
    the status code.
    """
    payload = parse_error_payload(body)

    if payload.error is not None:
        message = _non_empty(payload.error.message)
        if message:
            return message
        field_errors = payload.error.field_errors
        if field_errors:
            message = _non_empty(field_errors[0].message)
            if message:
                return message

    message = _non_empty(payload.detail) or _non_empty(payload.message)
    if message:
        return message

    return STATUS_MESSAGES.get(status, GENERIC_ERROR_MESSAGE)


def extract_error_details(status: int, body: Any = None) -> NormalizedError:
    """Build the normalized error; code and details come only from the structured shape."""
    payload = parse_error_payload(body)
    code = payload.error.code if payload.error is not None else None
    details = payload.error.details if payload.error is not None else None
    return NormalizedError(
        message=extract_error_message(status, body),
        status=status,
        code=str(code) if code else None,
        details=details,
    )


def is_validation_error(body: Any) -> bool:
    """True when the body carries ``error.details.field_errors`` as a list."""
    payload = parse_error_payload(body)
    return payload.error is not None and payload.error.field_errors is not None


def get_field_errors(body: Any) -> list[dict[str, Any]]:
    """Return ``[{field, message}]`` for a validation error body, else an empty list."""
    payload = parse_error_payload(body)
    if payload.error is None or payload.error.field_errors is None:
        return []
    return [{"field": e.field, "message": e.message} for e in payload.error.field_errors]


def format_validation_errors(field_errors: list[dict[str, Any]]) -> str:
    """Join field errors into one line: the message alone for one, ``field: message; ...`` for several."""
    if not field_errors:
        return VALIDATION_FAILED_MESSAGE
    if len(field_errors) == 1:
        return field_errors[0]["message"]
    return "; ".join(f"{_field_label(e['field'])}: {e['message']}" for e in field_errors)


def _field_label(field: Any) -> str:
    return "" if field is None else str(field)
