# Role: Central configuration module. Loads .env into environment variables and computes runtime settings.
# Importers read trip_assistant.config.<NAME> instead of threading flags through every call.

from __future__ import annotations

import os
from dotenv import load_dotenv

DEBUG: bool = False
LOG_LEVEL: str = "INFO"

GEMINI_MODEL: str = "gemini-1.5-flash"
GEMINI_TEMPERATURE: float = 0.3

# Gateway limits (seconds).
MIN_INTERVAL_SECONDS: float = 1.0
CALL_TIMEOUT_SECONDS: float = 120.0
HEARTBEAT_SECONDS: float = 30.0
RATE_LIMIT_BACKOFF_BASE_SECONDS: float = 5.0
RATE_LIMIT_BACKOFF_CAP_SECONDS: float = 30.0

# Rolling history handed to the extractor, in user/assistant exchanges.
HISTORY_EXCHANGES: int = 4

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_env() -> None:
    """
    Load .env into os.environ, then recompute every setting.
    This keeps settings correct even if load_env() is called after import.
    """
    global DEBUG, LOG_LEVEL, GEMINI_MODEL, GEMINI_TEMPERATURE
    global MIN_INTERVAL_SECONDS, CALL_TIMEOUT_SECONDS, HEARTBEAT_SECONDS
    global RATE_LIMIT_BACKOFF_BASE_SECONDS, RATE_LIMIT_BACKOFF_CAP_SECONDS, HISTORY_EXCHANGES

    load_dotenv()
    # Key line: accept common truthy values.
    DEBUG = os.getenv("DEBUG", "0").lower() in {"1", "true", "yes"}
    level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    # Unknown names would make logging.setLevel raise at startup.
    LOG_LEVEL = "DEBUG" if DEBUG else (level if level in _LOG_LEVELS else "INFO")

    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    GEMINI_TEMPERATURE = _float_env("GEMINI_TEMPERATURE", 0.3)

    MIN_INTERVAL_SECONDS = _float_env("MIN_INTERVAL_SECONDS", 1.0)
    CALL_TIMEOUT_SECONDS = _float_env("CALL_TIMEOUT_SECONDS", 120.0)
    HEARTBEAT_SECONDS = _float_env("HEARTBEAT_SECONDS", 30.0)
    RATE_LIMIT_BACKOFF_BASE_SECONDS = _float_env("RATE_LIMIT_BACKOFF_BASE_SECONDS", 5.0)
    RATE_LIMIT_BACKOFF_CAP_SECONDS = _float_env("RATE_LIMIT_BACKOFF_CAP_SECONDS", 30.0)
    HISTORY_EXCHANGES = _int_env("HISTORY_EXCHANGES", 4)


def api_key_configured() -> bool:
    return bool(os.getenv("GEMINI_API_KEY"))
