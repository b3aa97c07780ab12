from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str = "INFO"
    log_dir: str = "logs"
    review_gap_1: int = 1
    review_gap_2: int = 3
    review_gap_3: int = 7
    storage_rate_limit: int = 50
    import_max_mb: int = 10
    alarm_check_seconds: int = 30


load_env()

DATABASE_URL = os.getenv("DATABASE_URL", "").strip() or f"sqlite:///{PROJECT_ROOT / 'darsino.db'}"

SETTINGS = Settings(
    database_url=DATABASE_URL,
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
    review_gap_1=int(os.getenv("REVIEW_GAP_1", "1")),
    review_gap_2=int(os.getenv("REVIEW_GAP_2", "3")),
    review_gap_3=int(os.getenv("REVIEW_GAP_3", "7")),
    storage_rate_limit=int(os.getenv("STORAGE_RATE_LIMIT", "50")),
    import_max_mb=int(os.getenv("IMPORT_MAX_MB", "10")),
    alarm_check_seconds=int(os.getenv("ALARM_CHECK_SECONDS", "30")),
)
