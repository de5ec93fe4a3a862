from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class CatalogPolicy:
    """Tunable thresholds for classification and catalog maintenance."""

    min_mentions: int = 3
    min_avg_score: float = 7.0
    lookback_days: int = 14
    retention_days: int = 14
    duplicate_similarity: float = 0.7
    min_confidence: float = 0.6
    max_competitors_per_execution: int = 20


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "bp_user"
    postgres_password: str = "changeme"
    postgres_db: str = "brandpulse"

    @property
    def postgres_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def postgres_url_sync(self) -> str:
        """For Alembic migrations (sync driver)."""
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # LLM provider credentials (injected by the hosting environment)
    openai_api_key: str = ""
    perplexity_api_key: str = ""
    gemini_api_key: str = ""

    # Provider calls
    provider_call_timeout: float = 20.0  # seconds, whole call including retries
    provider_request_timeout: float = 6.0  # seconds, one HTTP attempt
    provider_max_attempts: int = 3
    provider_base_retry_delay: float = 1.0
    provider_max_retry_delay: float = 8.0
    openai_models: str = "gpt-4o-mini,gpt-4o"  # comma-separated fallback chain
    perplexity_models: str = "sonar,sonar-pro"
    gemini_models: str = "gemini-2.0-flash,gemini-1.5-flash"
    enabled_providers: str = "openai,perplexity,gemini"

    # Classification / catalog policy
    catalog_min_mentions: int = 3
    catalog_min_avg_score: float = 7.0
    catalog_lookback_days: int = 14
    catalog_retention_days: int = 14
    catalog_list_limit: int = 50
    catalog_sync_timeout: float = 60.0
    catalog_sync_on_execution: bool = True  # run the org sweep after each successful execution
    duplicate_similarity_threshold: float = 0.7
    classification_min_confidence: float = 0.6
    max_competitors_per_execution: int = 20

    # Org overlay cache
    overlay_cache_ttl_seconds: float = 300.0

    # Cross-provider consensus
    consensus_window_hours: int = 24
    consensus_min_ratio: float = 0.5

    # Optional JSON file overriding built-in blocklists / allowlists
    lexicon_path: str = ""

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://app.example.com,https://admin.example.com"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable
    sentry_traces_sample_rate: float = 0.1

    def thresholds(self) -> CatalogPolicy:
        return CatalogPolicy(
            min_mentions=self.catalog_min_mentions,
            min_avg_score=self.catalog_min_avg_score,
            lookback_days=self.catalog_lookback_days,
            retention_days=self.catalog_retention_days,
            duplicate_similarity=self.duplicate_similarity_threshold,
            min_confidence=self.classification_min_confidence,
            max_competitors_per_execution=self.max_competitors_per_execution,
        )

    def provider_models(self, provider: str) -> list[str]:
        raw = getattr(self, f"{provider}_models", "")
        return [m.strip() for m in raw.split(",") if m.strip()]

    def provider_api_key(self, provider: str) -> str:
        return getattr(self, f"{provider}_api_key", "")

    def enabled_provider_names(self) -> list[str]:
        return [p.strip() for p in self.enabled_providers.split(",") if p.strip()]


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if settings.catalog_min_mentions < 1:
        errors.append("CATALOG_MIN_MENTIONS must be >= 1")

    if not 0.0 < settings.duplicate_similarity_threshold <= 1.0:
        errors.append("DUPLICATE_SIMILARITY_THRESHOLD must be in (0, 1]")

    if not 0.0 < settings.provider_request_timeout < settings.provider_call_timeout:
        errors.append("PROVIDER_REQUEST_TIMEOUT must be positive and below PROVIDER_CALL_TIMEOUT")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")
        if not any(settings.provider_api_key(p) for p in settings.enabled_provider_names()):
            errors.append("At least one of OPENAI_API_KEY, PERPLEXITY_API_KEY, GEMINI_API_KEY must be set")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
