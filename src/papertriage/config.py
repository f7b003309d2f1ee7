"""
Process configuration read from environment variables.

Entry points (CLI, API app, arq worker) load a local ``.env`` first, so every
value below can also live there.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_DB_URL = "sqlite:///data/papertriage.db"


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


def _env_str(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


def _parse_csv_ints(raw: str) -> List[int]:
    values: List[int] = []
    for item in raw.split(","):
        item = item.strip()
        if item.isdigit():
            values.append(int(item))
    return values


@dataclass(frozen=True)
class Settings:
    db_url: str = DEFAULT_DB_URL

    llm_api_key: Optional[str] = None
    llm_base_url: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    summary_language: str = "Japanese"

    semantic_scholar_api_key: Optional[str] = None
    openalex_email: Optional[str] = None

    keyword_max_results: int = 5
    citation_max_seeds: int = 5
    citation_manual_max_seeds: int = 20
    run_time_budget_seconds: float = 60.0
    citation_seconds_per_seed: float = 10.0

    redis_host: str = "127.0.0.1"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    collect_cron_hours: tuple = (6,)
    cron_secret: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        cron_hours = _parse_csv_ints(os.getenv("PAPERTRIAGE_COLLECT_CRON_HOURS", "6"))
        return cls(
            db_url=_env_str("PAPERTRIAGE_DB_URL") or DEFAULT_DB_URL,
            llm_api_key=_env_str("OPENAI_API_KEY"),
            llm_base_url=_env_str("PAPERTRIAGE_LLM_BASE_URL"),
            llm_model=_env_str("PAPERTRIAGE_LLM_MODEL") or "gpt-4o-mini",
            summary_language=_env_str("PAPERTRIAGE_SUMMARY_LANGUAGE") or "Japanese",
            semantic_scholar_api_key=_env_str("SEMANTIC_SCHOLAR_API_KEY"),
            openalex_email=_env_str("OPENALEX_EMAIL"),
            keyword_max_results=_env_int("PAPERTRIAGE_KEYWORD_MAX_RESULTS", 5),
            citation_max_seeds=_env_int("PAPERTRIAGE_CITATION_MAX_SEEDS", 5),
            citation_manual_max_seeds=_env_int("PAPERTRIAGE_CITATION_MANUAL_MAX_SEEDS", 20),
            run_time_budget_seconds=_env_float("PAPERTRIAGE_RUN_TIME_BUDGET", 60.0),
            citation_seconds_per_seed=_env_float("PAPERTRIAGE_CITATION_SECONDS_PER_SEED", 10.0),
            redis_host=os.getenv("PAPERTRIAGE_REDIS_HOST", "127.0.0.1"),
            redis_port=_env_int("PAPERTRIAGE_REDIS_PORT", 6379),
            redis_db=_env_int("PAPERTRIAGE_REDIS_DB", 0),
            redis_password=_env_str("PAPERTRIAGE_REDIS_PASSWORD"),
            collect_cron_hours=tuple(cron_hours or [6]),
            cron_secret=_env_str("PAPERTRIAGE_CRON_SECRET"),
        )
