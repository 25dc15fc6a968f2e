"""
config.py — LeaseWise application settings.

Usage:
    from leasewise.config import settings
    print(settings.redis_url)

Never use FastAPI Depends() for settings — import directly as a module-level singleton.
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore any extra env vars
    )

    # --- Redis projection cache ---
    # Off by default: every request is computed fresh, nothing needs to be running.
    cache_enabled: bool = False
    redis_url: str = "redis://localhost:6379"
    projection_cache_ttl: int = 3600   # seconds

    # --- Slab tables ---
    # False = compatibility mode: custom slab tables are used unchecked.
    strict_slab_validation: bool = True

    # --- Share links ---
    public_base_url: str = "http://localhost:5173/"

    # --- CORS ---
    # Comma-separated list of allowed frontend origins
    cors_origins: str = "http://localhost:5173,http://localhost:5174"

    # --- Application ---
    debug: bool = True
    app_version: str = "0.1.0"

    @property
    def cors_origins_list(self) -> List[str]:
        """Split comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Module-level singleton — import this throughout the codebase
settings = Settings()
