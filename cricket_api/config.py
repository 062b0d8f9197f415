# cricket_api/config.py
from __future__ import annotations

import logging
import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


# -------------------------
# App
# -------------------------
API_TITLE: str = _get_env("API_TITLE", "Cricket Scoring API")
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()


# -------------------------
# Cache TTLs
# -------------------------
# Scorecard keys include the match version, so the TTL only bounds memory.
SCORECARD_CACHE_TTL_SECONDS: int = _get_env_int("SCORECARD_CACHE_TTL_SECONDS", 30)
LIVE_CACHE_TTL_SECONDS: int = _get_env_int("LIVE_CACHE_TTL_SECONDS", 5)


def validate_config() -> None:
    if not isinstance(logging.getLevelName(LOG_LEVEL), int):
        raise RuntimeError(f"LOG_LEVEL must be a standard logging level, got {LOG_LEVEL!r}")

    if not API_TITLE:
        raise RuntimeError("API_TITLE must not be empty")

    # TTL validation
    if SCORECARD_CACHE_TTL_SECONDS <= 0:
        raise RuntimeError("SCORECARD_CACHE_TTL_SECONDS must be positive")

    if LIVE_CACHE_TTL_SECONDS <= 0:
        raise RuntimeError("LIVE_CACHE_TTL_SECONDS must be positive")
