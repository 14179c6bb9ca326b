"""
BizDash Backend Configuration

Uses pydantic-settings for type-safe environment variable loading.
"""

from functools import lru_cache
from pathlib import Path
from urllib.parse import urlsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings

DEFAULT_BACKEND_API_URL = "http://127.0.0.1:8000"

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "BizDash"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # REST backend (inventory / invoices / suppliers)
    backend_api_url: str = DEFAULT_BACKEND_API_URL
    backend_auth_scheme: str = "Token"
    backend_retry_attempts: int = 3

    # Analytics
    business_timezone: str = "UTC"
    restock_horizon_days: int = 30
    stockout_sentinel_days: int = 999
    new_customer_window_days: int = 30
    top_profitable_limit: int = 10
    top_customers_limit: int = 5
    top_suppliers_limit: int = 5

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.business_timezone)

    @property
    def api_root(self) -> str:
        """Base URL with the /api prefix, appended only when missing."""
        base = self.backend_api_url.rstrip("/")
        if urlsplit(base).path.endswith("/api"):
            return base
        return f"{base}/api"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _validate_timezone(settings)
    _enforce_security_guardrails(settings)
    return settings


def _validate_timezone(settings: Settings) -> None:
    try:
        ZoneInfo(settings.business_timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown business_timezone: {settings.business_timezone!r}") from exc


def _enforce_security_guardrails(settings: Settings) -> None:
    env = settings.app_env.strip().lower()
    is_local = env in {"", "local", "dev", "development", "test"}
    if is_local:
        return

    if settings.debug:
        raise ValueError("Refusing to start with debug=true outside local/dev/test")
    if settings.backend_api_url.startswith("http://"):
        raise ValueError("Refusing to send session tokens over plain http outside local/dev/test")
