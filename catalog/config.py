from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Catalog settings, read from CATALOG_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_", env_file=".env", extra="ignore", case_sensitive=False,
    )

    # Storage. An empty db_path disables local storage like storage_enabled=false.
    db_path: str = "catalog.db"
    storage_enabled: bool = True
    echo_sql: bool = False

    # View derivation
    debounce_ms: int = 300

    log_level: str = "WARNING"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
