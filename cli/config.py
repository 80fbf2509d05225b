"""Connection and polling options for the CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    poll_timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "CLIConfig":
        return cls(
            base_url=environ.get("API_BASE_URL") or DEFAULT_BASE_URL,
            poll_interval=_seconds(environ.get("CLI_POLL_INTERVAL"), DEFAULT_POLL_INTERVAL),
            poll_timeout=_seconds(environ.get("CLI_POLL_TIMEOUT"), DEFAULT_TIMEOUT),
        )


def _seconds(raw: Optional[str], default: float) -> float:
    try:
        value = float(raw) if raw and raw.strip() else default
    except ValueError:
        return default
    return value if value > 0 else default


def load_config(
    base_url: Optional[str] = None,
    poll_interval: Optional[float] = None,
    poll_timeout: Optional[float] = None,
) -> CLIConfig:
    """Explicit options win over environment variables, which win over defaults."""
    overrides = {
        key: value
        for key, value in (
            ("base_url", base_url),
            ("poll_interval", poll_interval),
            ("poll_timeout", poll_timeout),
        )
        if value is not None
    }
    config = replace(CLIConfig.from_env(os.environ), **overrides)
    return replace(config, base_url=config.base_url.rstrip("/"))
