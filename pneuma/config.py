"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./pneuma.db"

    # Service
    service_name: str = "pneuma"
    log_level: str = "INFO"

    # Seed values for the configuration store (minor units)
    default_min_floor: int = 20_000
    default_max_ceil: int = 100_000
    default_resilience_days: int = 30

    # Listing
    recent_transactions_limit: int = 20
    page_size_max: int = 100


settings = Settings()
