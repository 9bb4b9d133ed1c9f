"""Runtime configuration for water risk assessment."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    service_name: str = "water-risk-service"
    service_version: str = "0.1.0"

    log_level: str = "INFO"
    metrics_enabled: bool = True
    event_produced_by: str = "services/water-risk-service"
    catalog_path: str | None = None

    model_config = SettingsConfigDict(env_prefix="WATER_RISK_", extra="ignore")


def get_settings() -> Settings:
    """Return settings object."""

    return Settings()
