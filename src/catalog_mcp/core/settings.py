"""Application settings and configuration.

This module defines all configuration options for the catalog MCP server.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Catalog MCP Server", alias="APP_NAME")
    app_version: str = Field(default="0.2.0", alias="APP_VERSION")
    environment: Literal["development", "staging", "production"] = Field(
        default="production",
        alias="ENVIRONMENT",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./catalog_mcp.db", alias="DATABASE_URL")
    database_auto_create: bool = Field(default=True, alias="DATABASE_AUTO_CREATE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Durable store table names
    accounts_table_name: str = Field(default="accounts", alias="ACCOUNTS_TABLE_NAME")
    sessions_table_name: str = Field(default="mcp_sessions", alias="SESSIONS_TABLE_NAME")
    usage_table_name: str = Field(default="usage_logs", alias="USAGE_TABLE_NAME")

    # Session lifecycle
    session_ttl_hours: int = Field(default=24, alias="SESSION_TTL_HOURS")
    usage_log_retention_days: int = Field(default=90, alias="USAGE_LOG_RETENTION_DAYS")

    # Rate limiting (short "minute" window and long "day" window)
    rate_limit_minute_limit: int = Field(default=1, alias="RATE_LIMIT_MINUTE_LIMIT")
    rate_limit_day_limit: int = Field(default=100, alias="RATE_LIMIT_DAY_LIMIT")
    rate_limit_minute_window_seconds: float = Field(
        default=60.0,
        alias="RATE_LIMIT_MINUTE_WINDOW_SECONDS",
    )
    rate_limit_day_window_seconds: float = Field(
        default=86_400.0,
        alias="RATE_LIMIT_DAY_WINDOW_SECONDS",
    )
    rate_limit_sweep_interval_seconds: float = Field(
        default=300.0,
        alias="RATE_LIMIT_SWEEP_INTERVAL_SECONDS",
    )
    rate_limit_backend: Literal["memory", "redis"] = Field(
        default="memory",
        alias="RATE_LIMIT_BACKEND",
    )

    # Redis configuration for the shared rate-limit backend
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Origin validation
    allowed_origins: list[str] = Field(
        default=[
            "https://catalogmcp.com",
            "https://www.catalogmcp.com",
            "https://api.catalogmcp.com",
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        alias="ALLOWED_ORIGINS",
    )
    stage_origin_suffix: str = Field(
        default="-api.catalogmcp.com",
        alias="STAGE_ORIGIN_SUFFIX",
    )

    # Lookup cache for tool results
    cache_ttl_seconds: float = Field(default=3600.0, alias="CACHE_TTL_SECONDS")

    # API keys handed out at signup
    api_key_prefix: str = Field(default="cmcp_", alias="API_KEY_PREFIX")

    # CORS configuration for the signup website and admin dashboard
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization", "x-api-key", "Mcp-Session-Id"],
        alias="CORS_ALLOW_HEADERS",
    )
    cors_expose_headers: list[str] = Field(
        default=[
            "Mcp-Session-Id",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "X-Request-Id",
        ],
        alias="CORS_EXPOSE_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        """Return True when running in permissive development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Return True for production deployments."""
        return self.environment == "production"

    @property
    def session_ttl_seconds(self) -> int:
        """Return the session lease length in seconds."""
        return int(self.session_ttl_hours) * 3600

    @property
    def usage_log_retention_seconds(self) -> int:
        """Return how long usage log rows are kept, in seconds."""
        return int(self.usage_log_retention_days) * 86_400


settings = Settings()
