"""Environment-driven settings for the Compass engine."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DATA_DIR = Path(__file__).parent / "data"


@dataclass(frozen=True)
class Settings:
    db_path: Path
    redis_url: str | None
    cache_disabled: bool
    match_cache_ttl: int
    max_concurrency: int


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return settings derived from the current environment."""
    return Settings(
        db_path=Path(os.environ.get("COMPASS_DB_PATH", str(DATA_DIR / "compass.db"))),
        redis_url=os.environ.get("REDIS_URL") or None,
        cache_disabled=_env_bool("COMPASS_CACHE_DISABLED"),
        match_cache_ttl=int(os.environ.get("COMPASS_MATCH_CACHE_TTL", "3600")),
        max_concurrency=int(os.environ.get("COMPASS_MAX_CONCURRENCY", "32")),
    )


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
