from __future__ import annotations

import os
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Supabase
        raw_url = os.getenv("SUPABASE_URL", "")
        self.supabase_url: str = raw_url.rstrip("/")
        self.supabase_key: str = os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_ANON_KEY", "")
        self.supabase_query_timeout_s: float = _env_float("SUPABASE_QUERY_TIMEOUT", 5.0)
        # Database (migrations only)
        self.database_url: str = os.getenv("DATABASE_URL", "")
        # Judge0 / execution backend
        self.judge0_api_url: str = os.getenv("JUDGE0_BASE_URL") or os.getenv("JUDGE0_URL", "")
        self.judge0_api_key: str = os.getenv("JUDGE0_KEY", "")
        self.judge0_host: str = os.getenv("JUDGE0_HOST", "")
        self.judge0_auth_token: str = os.getenv("JUDGE0_AUTH_TOKEN", "")
        self.judge0_timeout_s: float = _env_float("JUDGE0_TIMEOUT_S", 10.0)
        # Polling budget
        self.judge0_poll_interval_ms: int = _env_int("JUDGE0_POLL_INTERVAL_MS", 500)
        self.judge0_poll_max_interval_ms: int = _env_int("JUDGE0_POLL_MAX_INTERVAL_MS", 2000)
        self.judge0_poll_backoff: float = _env_float("JUDGE0_POLL_BACKOFF", 1.5)
        self.judge0_max_wait_ms: int = _env_int("JUDGE0_MAX_WAIT_MS", 30000)
        # Submission limits
        self.max_code_length: int = _env_int("MAX_CODE_LENGTH", 50000)
        # App meta
        self.app_name: str = "Judge Orchestrator"
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def judge0_configured(self) -> bool:
        return bool(self.judge0_api_url)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
