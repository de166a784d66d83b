"""Tests for codequest.ui.models – LevelState dataclass."""

from __future__ import annotations

import pytest

from codequest.core.levels import LevelDescriptor, parse_level
from codequest.ui.models import LevelState


# ===========================================================================
# LevelState dataclass
# ===========================================================================

class TestLevelState:
    @pytest.fixture()
    def sample_level(self) -> LevelDescriptor:
        raw = {
            "title": "Learn Commands",
            "kind": "commands",
            "allowed_actions": ["moveLeft", "jump"],
            "layout": {
                "start": {"x": 150, "y": 200},
                "goal": {"x": 0, "y": 200, "width": 100, "height": 50},
            },
        }
        return parse_level("level1", 1, raw, "level1.yaml")

    def test_creation(self, sample_level: LevelDescriptor):
        ls = LevelState(level=sample_level, unlocked=True, completed=False)
        assert ls.level is sample_level
        assert ls.unlocked is True
        assert ls.completed is False
        assert ls.is_current is False  # default

    def test_equality(self, sample_level: LevelDescriptor):
        a = LevelState(level=sample_level, unlocked=True, completed=True)
        b = LevelState(level=sample_level, unlocked=True, completed=True)
        assert a == b

    def test_label_open(self, sample_level: LevelDescriptor):
        ls = LevelState(level=sample_level, unlocked=True, completed=False)
        assert ls.label == "1. Learn Commands"

    def test_label_completed(self, sample_level: LevelDescriptor):
        ls = LevelState(level=sample_level, unlocked=True, completed=True)
        assert ls.label == "1. Learn Commands ✓"

    def test_label_locked(self, sample_level: LevelDescriptor):
        ls = LevelState(level=sample_level, unlocked=False, completed=False)
        assert ls.label.endswith("🔒")

    def test_mutable(self, sample_level: LevelDescriptor):
        ls = LevelState(level=sample_level, unlocked=False, completed=False)
        ls.unlocked = True
        ls.is_current = True
        assert ls.unlocked is True
        assert ls.is_current is True
