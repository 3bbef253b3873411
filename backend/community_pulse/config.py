"""
Application configuration with environment variable support.
"""
from __future__ import annotations

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_env_float(key: str, default: float) -> float:
    """Get float value from environment variable with fallback."""
    try:
        return float(os.getenv(key, default))
    except (ValueError, TypeError):
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable with fallback."""
    try:
        return int(os.getenv(key, default))
    except (ValueError, TypeError):
        return default


def _get_env_list(key: str, default: list[str], separator: str = ",") -> list[str]:
    """Get list value from environment variable with fallback."""
    value = os.getenv(key)
    if not value:
        return default
    return [item.strip() for item in value.split(separator) if item.strip()]


class Settings(BaseSettings):
    """Secrets and endpoints for the external collaborators, read from the environment or .env."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    OPENAI_API_KEY: str = ""
    NEYNAR_API_KEY: str = ""
    REDIS_URL: str = ""


settings = Settings()

# LLM Fallback Settings
# Posts whose heuristic confidence falls below this go to the LLM, if enabled
LLM_CONFIDENCE_THRESHOLD: float = _get_env_float("LLM_CONFIDENCE_THRESHOLD", 0.4)
LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_BATCH_SIZE: int = _get_env_int("LLM_BATCH_SIZE", 20)
LLM_MAX_TEXT_CHARS: int = _get_env_int("LLM_MAX_TEXT_CHARS", 300)

# Cache Settings
DASHBOARD_TTL_SECONDS: int = _get_env_int("DASHBOARD_TTL_SECONDS", 900)

# Social Graph Ingestion Settings
NEYNAR_API_BASE: str = os.getenv("NEYNAR_API_BASE", "https://api.neynar.com/v2")
MAX_CASTS: int = _get_env_int("MAX_CASTS", 500)
MAX_REPLIES_PER_ROOT: int = _get_env_int("MAX_REPLIES_PER_ROOT", 100)
CASTS_PAGE_SIZE: int = _get_env_int("CASTS_PAGE_SIZE", 150)
REPLY_FETCH_CONCURRENCY: int = _get_env_int("REPLY_FETCH_CONCURRENCY", 10)
RATE_LIMIT_DELAY_SECONDS: float = _get_env_float("RATE_LIMIT_DELAY_SECONDS", 0.25)
HTTP_TIMEOUT_SECONDS: float = _get_env_float("HTTP_TIMEOUT_SECONDS", 15.0)

# Dashboard ranges (label -> days)
DASHBOARD_RANGES: dict[str, int] = {
    "7d": 7,
    "30d": 30,
}
TOP_EXAMPLES_LIMIT: int = _get_env_int("TOP_EXAMPLES_LIMIT", 5)

# HTTP Client Configuration
USER_AGENT = "community-pulse/0.1"
HTTP_HEADERS = {"User-Agent": USER_AGENT, "accept": "application/json"}

# CORS Configuration
CORS_ALLOW_ORIGINS: list[str] = _get_env_list("CORS_ALLOW_ORIGINS", ["*"])

# Logging Configuration
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv(
    "LOG_FORMAT",
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
