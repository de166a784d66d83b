"""Runtime settings read from ``CODEQUEST_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_PACING_MS = 300
DEFAULT_ENEMY_INTERVAL_MS = 2000


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a whole number, using %d", name, raw, default)
        return default
    if value < 0:
        logger.warning("Ignoring %s=%r: must not be negative, using %d", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class GameConfig:
    pacing_ms: int = DEFAULT_PACING_MS
    enemy_interval_ms: int = DEFAULT_ENEMY_INTERVAL_MS
    unlock_all: bool = False
    log_level: str = "INFO"
    home_dir: Path = Path.home() / ".codequest"

    @property
    def progress_path(self) -> Path:
        return self.home_dir / "progress.json"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GameConfig":
        env = os.environ if environ is None else environ
        home = env.get("CODEQUEST_HOME")
        return cls(
            pacing_ms=_int_setting(env, "CODEQUEST_PACING_MS", DEFAULT_PACING_MS),
            enemy_interval_ms=_int_setting(env, "CODEQUEST_ENEMY_INTERVAL_MS", DEFAULT_ENEMY_INTERVAL_MS),
            unlock_all=env.get("CODEQUEST_UNLOCK_ALL") == "1",
            log_level=env.get("CODEQUEST_LOG_LEVEL", "INFO").upper(),
            home_dir=Path(home).expanduser() if home else Path.home() / ".codequest",
        )
