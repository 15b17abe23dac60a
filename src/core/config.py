from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str
    db_pool_size: int = 10
    db_max_overflow: int = 20

    @property
    def async_database_url(self) -> str:
        """Return database URL with asyncpg driver for SQLAlchemy async."""
        url = self.database_url
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        return url

    # Redis (taskiq broker + lifecycle event stream)
    redis_url: str = "redis://localhost:6379/0"
    lifecycle_event_stream: str = "billing:lifecycle"
    lifecycle_event_maxlen: int = 100_000

    # Sweep cadence (cron, UTC)
    overdue_sweep_cron: str = "0 0 * * *"
    recurring_invoice_cron: str = "0 6 * * *"
    recurring_expense_cron: str = "0 6 * * *"

    # Lifecycle
    store_timeout_seconds: float = 30.0
    sweep_batch_limit: int = 500
    numbering_max_retries: int = 5
    default_invoice_pattern: str = "INV-{NUMBER:5}"
    default_currency: str = "USD"

    # App
    app_env: str = "development"
    log_level: str = "INFO"


settings = Settings()
