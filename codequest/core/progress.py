from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class LevelProgress:
    completed: bool = False
    runs: int = 0
    best_runs: int = 0


class ProgressStore:
    """Stores which levels are completed. Persists to disk across app restarts.
    File: ~/.codequest/progress.json unless another path is given. Cleared only
    when the player resets their progress."""

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path or Path.home() / ".codequest" / "progress.json"
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._progress = self._load()

    def get_level_progress(self, level_key: str) -> LevelProgress:
        return self._progress.get(level_key, LevelProgress())

    def record_run(self, level_key: str, completed: bool, runs_this_attempt: int) -> None:
        """Count a finished run; remember the fewest runs needed when *completed*."""
        current = self._progress.get(level_key, LevelProgress())
        current.runs += 1
        if completed:
            if not current.best_runs or runs_this_attempt < current.best_runs:
                current.best_runs = runs_this_attempt
            current.completed = True
        self._progress[level_key] = current
        self._save()

    def is_unlocked(self, level_keys: Sequence[str], level_key: str, unlock_all: bool = False) -> bool:
        """The first level is always open; any other opens once the previous one is completed."""
        if unlock_all:
            return True
        index = list(level_keys).index(level_key)
        if index == 0:
            return True
        return self.get_level_progress(level_keys[index - 1]).completed

    def completed_count(self) -> int:
        return sum(1 for p in self._progress.values() if p.completed)

    def reset_level(self, level_key: str) -> None:
        """Clear progress for a single level."""
        self._progress[level_key] = LevelProgress()
        self._save()

    def reset(self) -> None:
        """Clear all progress. Only called when the player asks for it."""
        self._progress = {}
        self._save()

    def save(self) -> None:
        """Persist current state to disk (e.g. on app exit)."""
        self._save()

    def _load(self) -> Dict[str, LevelProgress]:
        progress: Dict[str, LevelProgress] = {}
        if not self._file_path.exists():
            return progress
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return progress
        if not isinstance(payload, dict):
            logger.warning("Ignoring progress file %s: unexpected content", self._file_path)
            return progress

        for key, value in payload.get("levels", {}).items():
            progress[key] = LevelProgress(
                completed=bool(value.get("completed", False)),
                runs=int(value.get("runs", 0)),
                best_runs=int(value.get("best_runs", 0)),
            )
        return progress

    def _save(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"levels": {key: asdict(value) for key, value in self._progress.items()}}
        try:
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)
