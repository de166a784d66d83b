"""Data models used by the UI."""

from __future__ import annotations

from dataclasses import dataclass

from codequest.core.levels import LevelDescriptor


@dataclass
class LevelState:
    """UI state for a single level: completion, unlock status, and selection."""

    level: LevelDescriptor
    unlocked: bool
    completed: bool
    is_current: bool = False

    @property
    def label(self) -> str:
        mark = "✓" if self.completed else ("" if self.unlocked else "🔒")
        return f"{self.level.number}. {self.level.title} {mark}".rstrip()
