"""
Runtime settings for the trip fund API.

Every value comes from an environment variable with a default suitable for
local development.
"""
import os
from decimal import Decimal, InvalidOperation


def _dust_threshold(raw: str) -> Decimal:
    """Settlement only terminates for a strictly positive threshold."""
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"SETTLEMENT_DUST_THRESHOLD must be a number, got {raw!r}")
    if not value.is_finite() or value <= 0:
        raise ValueError(f"SETTLEMENT_DUST_THRESHOLD must be greater than zero, got {raw!r}")
    return value


class Settings:
    # Storage
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./tripfund.db")

    # Logging (None -> ./logs/api.log next to the package)
    log_path: str | None = os.getenv("LOG_PATH") or None

    # Settlement: transfers at or below this amount are not worth emitting
    dust_threshold: Decimal = _dust_threshold(os.getenv("SETTLEMENT_DUST_THRESHOLD", "1"))

    # External collaborators
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    openweather_api_key: str = os.getenv("OPENWEATHER_API_KEY", "")
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))


settings = Settings()
