"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KNOWN_SOURCES = ("header", "subdomain", "jwt", "claim")


class TenancySettings(BaseSettings):
    """Tenant resolution settings.

    Environment variables:
        TENANCY_SOURCES: JSON list of strategies in order (default: ["header"])
        TENANCY_CONTEXT_KEY: Context key for the tenant (default: tenancy_tenant)
        TENANCY_LOGGER_METADATA_ENABLED: Bind tenant into log context (default: true)
        TENANCY_OBSERVABILITY_ENABLED: Emit resolution events (default: true)
        TENANCY_REQUIRE_RESOLVED: Reject unresolved requests with 400 (default: false)
        TENANCY_HEADER_NAME: Header read by the header strategy (default: x-tenant-id)
        TENANCY_SUBDOMAIN_EXCLUDE: JSON list of ignored labels
        TENANCY_SUBDOMAIN_POSITION: first, last or an index (default: first)
        TENANCY_JWT_CLAIM: Claim path read by the jwt strategy (default: tenant_id)
        TENANCY_JWT_COOKIE: Cookie holding the token instead of Authorization
        TENANCY_JWT_VERIFY: Verify token signatures (default: false)
        TENANCY_JWT_SECRET: Verification secret (required when verifying)
        TENANCY_JWT_ALGORITHM: Verification algorithm (default: HS256)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    sources: list[str] = Field(
        default_factory=lambda: ["header"],
        description="Extraction strategies in evaluation order",
    )
    context_key: str = Field(
        default="tenancy_tenant",
        description="Context key the tenant is stored under",
        min_length=1,
    )
    logger_metadata_enabled: bool = Field(
        default=True, description="Bind the tenant into structured log context"
    )
    observability_enabled: bool = Field(
        default=True, description="Emit tenant resolution events"
    )
    require_resolved: bool = Field(
        default=False, description="Reject requests without a tenant"
    )
    header_name: str = Field(default="x-tenant-id", description="Tenant header")
    subdomain_exclude: list[str] = Field(
        default_factory=lambda: ["www", "api", "admin"],
        description="Subdomain labels that never name a tenant",
    )
    subdomain_position: Literal["first", "last"] | int = Field(
        default="first", description="Which subdomain label to use"
    )
    jwt_claim: str = Field(default="tenant_id", description="Claim path")
    jwt_cookie: str | None = Field(default=None, description="Token cookie")
    jwt_verify: bool = Field(default=False, description="Verify token signatures")
    jwt_secret: SecretStr = Field(
        default=SecretStr(""), description="Token verification secret"
    )
    jwt_algorithm: str = Field(default="HS256", description="Token algorithm")

    @field_validator("sources")
    @classmethod
    def validate_sources(cls, value: list[str]) -> list[str]:
        """Only built-in strategies can be named from the environment."""
        unknown = [source for source in value if source not in KNOWN_SOURCES]
        if unknown:
            raise ValueError(
                f"Unknown sources {unknown}; expected any of {list(KNOWN_SOURCES)}"
            )
        return value

    @field_validator("subdomain_position")
    @classmethod
    def validate_subdomain_position(cls, value: str | int) -> str | int:
        if isinstance(value, int) and value < 0:
            raise ValueError("subdomain_position must be a non-negative integer")
        return value

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "TenancySettings":
        """Validate a secret is configured when verification is on."""
        if self.jwt_verify and not self.jwt_secret.get_secret_value():
            raise ValueError("jwt_secret is required when jwt_verify is true")
        return self


class LoggingSettings(BaseSettings):
    """Logging settings.

    Environment variables:
        TENANCY_LOG_LEVEL: Minimum level (default: INFO)
        TENANCY_LOG_JSON: Force JSON output even on a TTY (default: false)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANCY_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    json_output: bool = Field(
        default=False,
        description="Force JSON output",
        validation_alias="TENANCY_LOG_JSON",
    )


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return TenancySettings()


@lru_cache
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return LoggingSettings()
