"""Process settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

DEFAULT_TABLE_NAME = "soil_health_batches"
DEFAULT_TABLE_PATH = "./tmp/batches.json"
DEFAULT_WORKERS = 4


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Stripped value of ``name``; ``""`` when set but blank, ``None`` when unset."""
    raw = environ.get(name)
    return None if raw is None else raw.strip()


def _positive_int(value: Optional[str], default: int) -> int:
    try:
        parsed = int(value) if value else default
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True)
class Settings:
    table_name: str = DEFAULT_TABLE_NAME
    # ``None`` keeps batch records in memory only.
    table_persistence_path: Optional[str] = DEFAULT_TABLE_PATH
    batch_workers: int = DEFAULT_WORKERS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "Settings":
        table_path = _env(environ, "BATCH_TABLE_PERSISTENCE_PATH")
        return cls(
            table_name=_env(environ, "BATCH_TABLE_NAME") or DEFAULT_TABLE_NAME,
            table_persistence_path=DEFAULT_TABLE_PATH if table_path is None else (table_path or None),
            batch_workers=_positive_int(_env(environ, "BATCH_WORKER_COUNT"), DEFAULT_WORKERS),
            log_level=(_env(environ, "LOG_LEVEL") or "INFO").upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env(os.environ)
