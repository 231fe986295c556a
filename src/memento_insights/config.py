"""Configuration management for memento-insights - Extensible provider architecture"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with support for multiple providers.

    Provider Selection:
        Provider names are strings that map to entry points. Built-in providers:
        - Completion: openai
        - Insight cache: memory, sqlite, supabase
        - Identity: supabase, dev

    The completion provider credential (OPENAI_API_KEY) is required at
    startup; see validate_completion_config().
    """

    # ===== Provider Selection =====
    # String-based to support dynamic plugin discovery
    completion_provider: str = Field(
        default="openai",
        description="Completion provider name (discovered via memento_insights.completion entry points)"
    )
    insight_cache_provider: str = Field(
        default="memory",
        description="Insight cache provider name (discovered via memento_insights.insight_cache entry points)"
    )
    identity_provider: str = Field(
        default="supabase",
        description="Identity provider name (discovered via memento_insights.identity entry points)"
    )

    # ===== Completion Configuration =====
    openai_api_key: str | None = None
    completion_model: str | None = None
    completion_temperature: float = 0.7
    completion_max_tokens: int = 800

    # Hardening: bounded wait and a single retry for transient failures
    completion_timeout: float = Field(default=30.0, gt=0)
    completion_max_retries: int = Field(default=1, ge=0, le=3)
    completion_retry_base_delay: float = 1.0

    # ===== Request Bounds =====
    min_entries: int = 1
    max_entries: int = 20
    max_content_length: int = 500  # Chars per entry sent upstream (token budget)

    # ===== Insight Cache Configuration =====
    insight_type: str = "theme_summary"
    cache_ttl_hours: int = 168  # 7 days
    cache_stale_hours: int = 24  # Advisory only, never forces regeneration
    insight_cache_db_path: str = "data/insights.db"
    rate_limit_retry_after: int = 60  # Seconds suggested to clients on RATE_LIMIT

    # ===== Supabase Configuration (identity + cache store) =====
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    supabase_service_role_key: str | None = None
    supabase_timeout: float = 10.0
    supabase_max_retries: int = 2

    # ===== Application Settings =====
    log_level: str = "info"
    cors_origins: str = "*"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore unknown fields from .env

    def get_completion_model(self) -> str:
        """Get completion model name based on provider"""
        if self.completion_model:
            return self.completion_model

        defaults = {
            "openai": "gpt-4o-mini",
        }
        return defaults.get(self.completion_provider, "gpt-4o-mini")

    def get_cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_completion_config(self) -> None:
        """Validate completion provider credentials

        Raises:
            ValueError: If the selected completion provider is missing its credential
        """
        if self.completion_provider == "openai" and not self.openai_api_key:
            raise ValueError(
                "OPENAI_API_KEY environment variable is required when completion_provider='openai'"
            )

    def validate_supabase_config(self) -> None:
        """Validate Supabase configuration when Supabase-backed providers are selected

        Raises:
            ValueError: If required Supabase settings are missing for selected providers
        """
        errors = []

        uses_supabase = (
            self.identity_provider == "supabase"
            or self.insight_cache_provider == "supabase"
        )
        if uses_supabase and not self.supabase_url:
            errors.append(
                "SUPABASE_URL environment variable is required when using Supabase providers"
            )

        if self.identity_provider == "supabase" and not self.supabase_anon_key:
            errors.append(
                "SUPABASE_ANON_KEY environment variable is required when identity_provider='supabase'"
            )

        if self.insight_cache_provider == "supabase" and not (
            self.supabase_service_role_key or self.supabase_anon_key
        ):
            errors.append(
                "SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) is required when "
                "insight_cache_provider='supabase'"
            )

        if errors:
            raise ValueError(
                "Supabase configuration validation failed:\n  - " + "\n  - ".join(errors)
            )


# Global settings instance
settings = Settings()
