from __future__ import annotations

import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

# Load variables from .env.example first (as defaults), then .env to override
project_root = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=project_root / ".env.example", override=False)
load_dotenv(dotenv_path=project_root / ".env", override=True)


def _getenv(key: str, default: str | None = None) -> str | None:
    v = os.getenv(key, default)
    return v


def _getbool(key: str, default: bool) -> bool:
    v = _getenv(key)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    app_env: str = _getenv("APP_ENV", "development") or "development"
    log_level: str = (_getenv("LOG_LEVEL", "INFO") or "INFO").upper()

    # Search defaults
    default_limit: int = int(_getenv("DEFAULT_LIMIT", "20") or 20)
    fuzzy_distance: int = int(_getenv("FUZZY_DISTANCE", "1") or 1)

    # Snapshot source: "demo" or a path to a JSON file with booking objects
    snapshot_source: str = _getenv("SNAPSHOT_SOURCE", "demo") or "demo"
    demo_generated_count: int = int(_getenv("DEMO_GENERATED_COUNT", "5000") or 5000)
    demo_seed: int = int(_getenv("DEMO_SEED", "42") or 42)

    # Reject the whole snapshot on the first malformed record
    rebuild_fail_fast: bool = _getbool("REBUILD_FAIL_FAST", False)


settings = Settings()
