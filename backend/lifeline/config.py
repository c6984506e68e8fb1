from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "LifeLine"
    app_version: str = "1.0.0"
    debug: bool = False
    secret_key: str = "change-me-in-production-use-long-random-string"
    log_level: str = "INFO"

    # Database (use SQLite for local dev, PostgreSQL for production)
    database_url: str = "sqlite+aiosqlite:///./lifeline.db"
    database_echo: bool = False
    database_required: bool = False
    db_retry_delay_seconds: float = 10.0

    # JWT
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Location settings
    location_stale_minutes: int = 5
    nearby_default_radius_km: float = 10.0
    nearby_max_radius_km: float = 50.0
    nearby_result_limit: int = 50

    # CORS
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
