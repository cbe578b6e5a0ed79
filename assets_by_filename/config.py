"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .models import FileAttribute

DEFAULT_BASE_SEGMENT = "assets"
SHORT_FORM_PREFIX = "_"
CANONICAL_ROUTE = "assets"

# Host routes that a custom base segment would shadow.
RESERVED_ENDPOINTS: tuple[str, ...] = (
    "items",
    "users",
    "roles",
    "permissions",
    "files",
    "collections",
    "relations",
    "fields",
    "settings",
    "activity",
    "revisions",
    "presets",
    "flows",
    "operations",
    "webhooks",
    "dashboards",
    "panels",
    "translations",
    "server",
    "extensions",
    "auth",
    "graphql",
    "static",
    "folders",
    "notifications",
    "utils",
    "schema",
    "assets",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    endpoint_path: str | None = Field(
        default=None,
        validation_alias="ASSETS_FILENAME_ENDPOINT_PATH",
        description="Custom base route segment; unset selects the short-form routes",
    )
    default_host: str | None = Field(
        default=None,
        validation_alias="HOST",
        description="host[:port] of the asset endpoint when the request has no Host header",
    )
    default_port: int = Field(
        default=8055,
        validation_alias="PORT",
        ge=1,
        le=65535,
        description="Port of the asset endpoint when none can be derived",
    )
    upstream_scheme: str = Field(
        default="http",
        validation_alias="ASSETS_UPSTREAM_SCHEME",
        pattern=r"^https?$",
        description="Scheme used for the outbound hop",
    )
    records_url: str = Field(
        default="http://localhost:8055",
        validation_alias="ASSETS_RECORDS_URL",
        description="Base URL of the host REST API used for file lookups",
    )
    listen_host: str = Field(default="0.0.0.0", validation_alias="ASSETS_LISTEN_HOST")
    listen_port: int = Field(default=8056, validation_alias="ASSETS_LISTEN_PORT", ge=1, le=65535)
    log_level: str = Field(default="INFO", validation_alias="ASSETS_LOG_LEVEL")
    access_log: bool = Field(
        default=True,
        validation_alias="ASSETS_ACCESS_LOG",
        description="Emit one aiohttp access log line per request",
    )

    @field_validator("endpoint_path", "default_host", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache
def get_settings() -> Settings:
    """Get the application settings instance."""
    return Settings()


def normalize_endpoint_path(endpoint_path: str | None) -> str | None:
    """Trim whitespace and surrounding slashes; an empty result means unset."""
    if endpoint_path is None:
        return None
    return endpoint_path.strip().strip("/").strip() or None


def validate_endpoint_path(endpoint_path: str | None) -> None:
    """Raise ConfigurationError if the custom segment collides with a host route."""
    segment = normalize_endpoint_path(endpoint_path)
    if segment is None:
        return

    if segment.lower() in RESERVED_ENDPOINTS:
        raise ConfigurationError(
            f'The endpoint path "{endpoint_path}" is reserved by the host and cannot be used. '
            f"Please choose a different value for ASSETS_FILENAME_ENDPOINT_PATH. "
            f"Reserved endpoints: {', '.join(RESERVED_ENDPOINTS)}"
        )


class RouteSpec(NamedTuple):
    path: str
    attribute: FileAttribute


class EndpointConfiguration(BaseModel):
    """Route layout derived once at startup.

    With a custom segment ``seg`` the routes are ``/seg/{filename}``,
    ``/seg/t/{filename}`` and ``/seg/d/{filename}``. Without one they live
    under the short-form prefix: ``/assets/_/fd/{filename}`` and friends.
    """

    model_config = ConfigDict(frozen=True)

    endpoint_path: str | None = None
    canonical_route: str = CANONICAL_ROUTE

    @field_validator("endpoint_path")
    @classmethod
    def _check_reserved(cls, value: str | None) -> str | None:
        segment = normalize_endpoint_path(value)
        # ConfigurationError is not a ValueError, so pydantic lets it propagate as is.
        validate_endpoint_path(segment)
        return segment

    @classmethod
    def from_settings(cls, settings: Settings) -> "EndpointConfiguration":
        return cls(endpoint_path=settings.endpoint_path)

    @property
    def is_custom(self) -> bool:
        return self.endpoint_path is not None

    @property
    def base_segment(self) -> str:
        return self.endpoint_path or DEFAULT_BASE_SEGMENT

    @property
    def route_prefix(self) -> str:
        if self.is_custom:
            return f"/{self.base_segment}"
        return f"/{self.base_segment}/{SHORT_FORM_PREFIX}"

    def routes(self) -> list[RouteSpec]:
        prefix = self.route_prefix
        disk_path = f"{prefix}/{{filename}}" if self.is_custom else f"{prefix}/fd/{{filename}}"
        return [
            RouteSpec(disk_path, FileAttribute.FILENAME_DISK),
            RouteSpec(f"{prefix}/t/{{filename}}", FileAttribute.TITLE),
            RouteSpec(f"{prefix}/d/{{filename}}", FileAttribute.FILENAME_DOWNLOAD),
        ]
