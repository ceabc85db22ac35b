"""
Configuration management for footballviz using pydantic-settings.

Provides typed configuration with validation, .env file support, and
sensible defaults for the analytics backend, the collaboration channel
and the local query tooling.

Features:
- Type-safe configuration with validation
- .env file support (auto-loaded)
- Environment variable overrides
- Identity provider check for commands that talk to the backend

Usage:
    from footballviz.config import settings

    api_url = settings.FOOTBALLVIZ_API_URL
    settings.require_identity_provider()  # fatal if SUPABASE_* missing
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from footballviz.errors import ConfigurationError


class Settings(BaseSettings):
    """
    footballviz client configuration.

    All settings can be configured via:
    1. .env file
    2. Environment variables
    3. Default values (defined below)

    Settings are loaded in this order (later sources override earlier):
    1. Default values
    2. .env file
    3. Environment variables (highest priority)
    """

    # =========================================================================
    # Backend Configuration
    # =========================================================================

    FOOTBALLVIZ_API_URL: str = Field(
        default="http://localhost:5001/api",
        description="Base URL of the analytics HTTP API (paths are appended to it)",
    )

    FOOTBALLVIZ_SOCKET_URL: str = Field(
        default="http://localhost:5001",
        description="Socket.IO collaboration server URL",
    )

    FOOTBALLVIZ_API_TOKEN: Optional[str] = Field(
        default=None,
        description="Bearer token sent to the API and the collaboration server",
    )

    FOOTBALLVIZ_HTTP_TIMEOUT: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds",
    )

    ENVIRONMENT: str = Field(
        default="development",
        description="Environment name: development, staging, production",
    )

    # =========================================================================
    # Identity Provider Configuration
    # =========================================================================

    SUPABASE_URL: Optional[str] = Field(
        default=None,
        description="Identity provider project URL",
    )

    SUPABASE_ANON_KEY: Optional[str] = Field(
        default=None,
        description="Identity provider anonymous (public) key",
    )

    # =========================================================================
    # Decision Service Configuration
    # =========================================================================

    DECISION_API_URL: str = Field(
        default="http://localhost:8008",
        description="Fourth-down decision service base URL",
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================

    FOOTBALLVIZ_LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    LOG_FORMAT: str = Field(
        default="text",
        description="Log format: 'text' for human-readable, 'json' for structured",
    )

    # =========================================================================
    # Realtime Collaboration Configuration
    # =========================================================================

    SOCKET_RECONNECTION_ATTEMPTS: int = Field(
        default=5,
        description="Reconnection attempts made by the Socket.IO transport",
    )

    SOCKET_RECONNECTION_DELAY: float = Field(
        default=1.0,
        description="Fixed delay between reconnection attempts in seconds",
    )

    SOCKET_CONNECT_TIMEOUT: float = Field(
        default=10.0,
        description="Timeout for the initial Socket.IO connection in seconds",
    )

    TYPING_TIMEOUT_SECONDS: float = Field(
        default=3.0,
        description="Seconds after which a silent collaborator stops 'typing'",
    )

    CURSOR_THROTTLE_SECONDS: float = Field(
        default=1 / 60,
        description="Minimum interval between cursor broadcasts (one frame)",
    )

    # =========================================================================
    # Query Builder / Explorer Configuration
    # =========================================================================

    QUERY_MAX_NESTING_LEVEL: int = Field(
        default=2,
        description="Nesting level at which 'add group' is disabled",
    )

    QUERY_EXECUTE_LIMIT: int = Field(
        default=50,
        description="Row limit sent with query execution requests",
    )

    QUERY_STATS_DEBOUNCE_SECONDS: float = Field(
        default=0.3,
        description="Debounce delay before recomputing remote query stats",
    )

    EXPLORER_PAGE_SIZE: int = Field(
        default=25,
        description="Rows per page in the data explorer",
    )

    # =========================================================================
    # Concurrency Configuration
    # =========================================================================

    MAX_CONCURRENT_LIGHT: int = Field(
        default=8,
        description="Max concurrent requests for light endpoints (schema, lists)",
    )

    MAX_CONCURRENT_STANDARD: int = Field(
        default=4,
        description="Max concurrent requests for standard endpoints (plays, stats)",
    )

    MAX_CONCURRENT_HEAVY: int = Field(
        default=2,
        description="Max concurrent requests for heavy endpoints (charts, reports, uploads)",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def require_identity_provider(self) -> None:
        """
        Fail fast when the identity provider is not configured.

        Raises:
            ConfigurationError: If SUPABASE_URL or SUPABASE_ANON_KEY is unset
        """
        missing = [
            name
            for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                "Missing identity provider environment variables",
                details={"missing": missing},
            )


# Global settings instance - loaded once on import
settings = Settings()


def reload_settings() -> Settings:
    """
    Reload settings from environment and .env file.

    Returns:
        New Settings instance with current environment values
    """
    return Settings()


__all__ = ["settings", "reload_settings", "Settings"]
