"""
DailyRoll — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # LINE Messaging API
    LINE_CHANNEL_SECRET: str
    LINE_CHANNEL_ACCESS_TOKEN: str
    LINE_API_BASE_URL: str = "https://api.line.me"
    LINE_TIMEOUT_SECONDS: float = 10.0

    # Storage (empty REDIS_URL selects the in-memory store)
    REDIS_URL: str = ""
    REDIS_TIMEOUT_SECONDS: float = 5.0
    STORE_FALLBACK: bool = True
    STORE_KEY_PREFIX: str = "dailyroll"

    # Attendance day boundaries are computed in this zone
    TIMEZONE: str = "Asia/Taipei"

    # Stats command
    STATS_DEFAULT_DAYS: int = 7
    STATS_MAX_DAYS: int = 90
    VACUOUS_FULL_ATTENDANCE: bool = True

    # LINE rejects text messages over 5000 characters
    MESSAGE_CHUNK_LIMIT: int = 4500

    # Webhook server
    WEBHOOK_HOST: str = "0.0.0.0"
    WEBHOOK_PORT: int = 8080
    WEBHOOK_PATH: str = "/api/webhook"

    @field_validator("STORE_FALLBACK", "VACUOUS_FULL_ATTENDANCE", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")

    @field_validator("WEBHOOK_PATH", mode="before")
    @classmethod
    def parse_path(cls, v: str) -> str:
        v = (v or "").strip() or "/api/webhook"
        return v if v.startswith("/") else f"/{v}"


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    secret = os.getenv("LINE_CHANNEL_SECRET", "")
    access_token = os.getenv("LINE_CHANNEL_ACCESS_TOKEN", "")

    if not secret or secret.startswith("your-"):
        print("ERROR: LINE_CHANNEL_SECRET is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not access_token or access_token.startswith("your-"):
        print("ERROR: LINE_CHANNEL_ACCESS_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        LINE_CHANNEL_SECRET=secret,
        LINE_CHANNEL_ACCESS_TOKEN=access_token,
        LINE_API_BASE_URL=os.getenv("LINE_API_BASE_URL", "https://api.line.me"),
        LINE_TIMEOUT_SECONDS=os.getenv("LINE_TIMEOUT_SECONDS", "10"),
        REDIS_URL=os.getenv("REDIS_URL", ""),
        REDIS_TIMEOUT_SECONDS=os.getenv("REDIS_TIMEOUT_SECONDS", "5"),
        STORE_FALLBACK=os.getenv("STORE_FALLBACK", "true"),
        STORE_KEY_PREFIX=os.getenv("STORE_KEY_PREFIX", "dailyroll"),
        TIMEZONE=os.getenv("TIMEZONE", "Asia/Taipei"),
        STATS_DEFAULT_DAYS=os.getenv("STATS_DEFAULT_DAYS", "7"),
        STATS_MAX_DAYS=os.getenv("STATS_MAX_DAYS", "90"),
        VACUOUS_FULL_ATTENDANCE=os.getenv("VACUOUS_FULL_ATTENDANCE", "true"),
        MESSAGE_CHUNK_LIMIT=os.getenv("MESSAGE_CHUNK_LIMIT", "4500"),
        WEBHOOK_HOST=os.getenv("WEBHOOK_HOST", "0.0.0.0"),
        WEBHOOK_PORT=os.getenv("WEBHOOK_PORT", "8080"),
        WEBHOOK_PATH=os.getenv("WEBHOOK_PATH", "/api/webhook"),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
