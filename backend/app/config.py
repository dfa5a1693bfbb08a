"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.symbols import PipTable


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Live relay
    relay_shared_secret: str = ""
    heartbeat_interval_seconds: float = Field(default=30.0, gt=0)

    # Risk sizing
    pip_table: PipTable = PipTable.V2
    leverage: float = Field(default=100.0, gt=0)

    # Execution venue reported by /status; must have an adapter
    broker_type: str = "mt5"

    # Strategy/risk profile file (YAML); None = backend/strategies.yaml
    strategies_file: str | None = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
