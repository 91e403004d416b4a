"""Runtime configuration loaded from ``DISPATCH_*`` environment variables."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values come from the environment (``DISPATCH_DATABASE_URL`` and so on) or a
    ``.env`` file. Time thresholds are plain numbers so tests can shrink them.
    """

    env: str = "development"
    log_level: str | None = None
    log_dir: str | None = None

    database_url: str = "sqlite:///dispatchline.db"

    # Enforcement thresholds and cadences
    auto_reject_after_minutes: int = 10
    payment_timeout_minutes: int = 15
    auto_reject_interval_seconds: float = 60
    payment_timeout_interval_seconds: float = 300
    metrics_interval_seconds: float = 3600
    cleanup_interval_seconds: float = 21600
    retention_days: int = 90

    # Kitchen and delivery estimates
    default_preparation_minutes: int = 30
    estimated_delivery_minutes: int = 30

    # Courier pay
    courier_base_fee: Decimal = Decimal("5.00")
    courier_fee_rate: Decimal = Decimal("0.15")
    courier_fee_cap: Decimal = Decimal("20.00")

    tax_rate: Decimal = Decimal("0.10")

    # "log" or "fake"
    notification_sink: str = "log"

    model_config = SettingsConfigDict(env_prefix="DISPATCH_", env_file=".env", env_file_encoding="utf-8", extra="ignore")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
