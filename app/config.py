"""Configuration management - loads environment variables into typed settings."""

from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HOST_CANDIDATES = "http://127.0.0.1:8000,http://localhost:8000,http://0.0.0.0:8000"


def _check_http_url(v: str) -> str:
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"URL must use http or https scheme, got {v}")
    if not parsed.netloc:
        raise ValueError(f"URL must have a valid host, got {v}")
    return v


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gateway Server Configuration
    gateway_host: str = Field(default="127.0.0.1", description="Host for the gateway to listen on")
    gateway_port: int = Field(default=3000, description="Port for the gateway to listen on")

    # Backend Location
    backend_api_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Base URL of the order/document backend API (used when host probing is off)",
    )
    public_api_url: str = Field(
        default="http://127.0.0.1:3000",
        description="Public URL of this gateway, used by the client library",
    )
    backend_host_probe: str = Field(
        default="0",
        description="Pick the backend by probing BACKEND_HOST_CANDIDATES (1 = enabled, 0 = disabled)",
    )
    backend_host_candidates: str = Field(
        default=DEFAULT_HOST_CANDIDATES,
        description="Ordered, comma-separated backend base URLs tried by the host prober",
    )

    # Timeout Configuration
    host_probe_timeout_s: float = Field(default=2.0, description="Timeout for each /health probe (seconds)")
    probed_request_timeout_s: float = Field(
        default=10.0,
        description="Timeout for ordinary backend calls through the probed base URL (seconds)",
    )
    direct_request_timeout_s: float | None = Field(
        default=None,
        description="Timeout for ordinary backend calls through BACKEND_API_URL (unset = no explicit timeout)",
    )
    extract_timeout_s: float = Field(
        default=900.0,
        description="Timeout for document extraction calls (seconds)",
    )

    # Upload Limits
    max_upload_bytes: int = Field(
        default=50_000_000,
        description="Maximum accepted size of a document upload request body",
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    @field_validator("gateway_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError(f"gateway_port must be between 1 and 65535, got {v}")
        return v

    @field_validator(
        "host_probe_timeout_s",
        "probed_request_timeout_s",
        "direct_request_timeout_s",
        "extract_timeout_s",
    )
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Validate timeout is positive when set."""
        if v is not None and v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    @field_validator("max_upload_bytes")
    @classmethod
    def validate_max_upload(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_upload_bytes must be positive, got {v}")
        return v

    @field_validator("backend_api_url", "public_api_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        return _check_http_url(v)

    @field_validator("backend_host_candidates")
    @classmethod
    def validate_candidates(cls, v: str) -> str:
        """Require at least one candidate and a valid URL for each."""
        hosts = [host.strip() for host in v.split(",") if host.strip()]
        if not hosts:
            raise ValueError("backend_host_candidates must list at least one base URL")
        for host in hosts:
            _check_http_url(host)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got {v}")
        return v.upper()

    @field_validator("backend_host_probe")
    @classmethod
    def validate_boolean_string(cls, v: str) -> str:
        """Validate boolean string format."""
        v_lower = v.lower().strip()
        if v_lower not in ("0", "1", "true", "false", "yes", "no"):
            raise ValueError(f"Boolean field must be '0', '1', 'true', 'false', 'yes', or 'no', got {v}")
        return v

    @property
    def backend_host_probe_bool(self) -> bool:
        """Convert backend_host_probe string to boolean."""
        v = self.backend_host_probe.lower().strip()
        return v in ("1", "true", "yes")

    @property
    def backend_host_candidates_list(self) -> list[str]:
        """Parse the comma-separated candidate list, keeping its order."""
        return [host.strip().rstrip("/") for host in self.backend_host_candidates.split(",") if host.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded from environment variables and .env file on first call.
    Subsequent calls return the cached instance.

    Raises:
        ValueError: If settings are invalid.

    Returns:
        Settings: The validated settings instance.
    """
    try:
        return Settings()
    except Exception as e:
        raise ValueError(
            f"Failed to load configuration: {e}\n"
            "Please check your .env file and ensure all settings are valid."
        ) from e
