"""Backend selection - base URL and timeout for each proxied call."""

from enum import Enum

from app.config import Settings
from app.prober import HostProber


class CallKind(str, Enum):
    """How long a proxied call is allowed to take."""

    DEFAULT = "default"
    EXTRACTION = "extraction"


async def select_backend_url(settings: Settings, prober: HostProber | None) -> str:
    """
    Select the backend base URL for an outbound call.

    With host probing enabled the prober's cached (or freshly probed) choice is
    used; otherwise the fixed BACKEND_API_URL.

    Args:
        settings: Application settings
        prober: The process-wide host prober, if one was created

    Returns:
        Base URL string without a trailing slash

    Raises:
        ValueError: If probing is enabled but no prober is available
    """
    if settings.backend_host_probe_bool:
        if prober is None:
            raise ValueError(
                "BACKEND_HOST_PROBE is enabled but no host prober was configured for this application."
            )
        return await prober.resolve()
    return settings.backend_api_url.rstrip("/")


def select_timeout(kind: CallKind, settings: Settings) -> float | None:
    """
    Select the timeout in seconds for a call, or None for no explicit limit.

    Extraction always gets the extended limit. Other calls use the short limit
    of the probed client in probing mode, and the direct-mode limit (unset by
    default) otherwise.
    """
    if kind is CallKind.EXTRACTION:
        return settings.extract_timeout_s
    if settings.backend_host_probe_bool:
        return settings.probed_request_timeout_s
    return settings.direct_request_timeout_s
