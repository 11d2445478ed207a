from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


@dataclass
class Settings:
    """Runtime configuration read from the environment (and `.env`)."""

    telegram_token: Optional[str] = None
    discord_token: Optional[str] = None
    db_backend: str = "sqlite"
    db_path: str = "rps.db"
    db_params: dict = field(default_factory=dict)
    default_turns_count: int = 3
    log_level: str = "INFO"


def load_settings() -> Settings:
    load_dotenv()

    db_params = {
        "host": os.environ.get("DB_HOST", "localhost"),
        "port": int(os.environ.get("DB_PORT", "5432")),
        "dbname": os.environ.get("DB_NAME", "rps"),
        "user": os.environ.get("DB_USER", "postgres"),
        "password": os.environ.get("DB_PASSWORD", ""),
    }

    return Settings(
        telegram_token=os.environ.get("TELEGRAM_TOKEN"),
        discord_token=os.environ.get("DISCORD_TOKEN"),
        db_backend=os.environ.get("DB_BACKEND", "sqlite").lower(),
        db_path=os.environ.get("DB_PATH", "rps.db"),
        db_params=db_params,
        default_turns_count=int(os.environ.get("DEFAULT_TURNS_COUNT", "3")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
