"""Tests for codequest.core.levels – YAML level descriptors and completion rules."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from codequest.core.interpreter import TechniqueFlags
from codequest.core.levels import (
    COMPLETION_PREDICATES,
    LevelDescriptor,
    LevelKind,
    LevelRepository,
    parse_level,
)
from codequest.core.world import WorldState


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def levels_dir(tmp_path: Path) -> Path:
    d = tmp_path / "levels"
    d.mkdir()
    return d


def _write(directory: Path, name: str, content: str) -> None:
    (directory / name).write_text(textwrap.dedent(content), encoding="utf-8")


MINIMAL_LEVEL = """\
    title: Tiny
    kind: commands
    allowed_actions: [moveLeft, jump]
    layout:
      start: {x: 150, y: 200}
      goal: {x: 0, y: 200, width: 100, height: 50}
"""


@pytest.fixture(scope="module")
def bundled() -> LevelRepository:
    return LevelRepository()


# ---------------------------------------------------------------------------
# Bundled levels
# ---------------------------------------------------------------------------

class TestBundledLevels:
    def test_five_levels_in_order(self, bundled: LevelRepository):
        assert bundled.keys() == ["level1", "level2", "level3", "level4", "level5"]

    def test_kinds(self, bundled: LevelRepository):
        assert [level.kind for level in bundled.all()] == [
            LevelKind.COMMANDS,
            LevelKind.VARIABLES,
            LevelKind.CONDITIONALS,
            LevelKind.LOOPS,
            LevelKind.FREE_ROAM,
        ]

    def test_numbers_follow_order(self, bundled: LevelRepository):
        assert [level.number for level in bundled.all()] == [1, 2, 3, 4, 5]

    def test_every_level_has_text(self, bundled: LevelRepository):
        for level in bundled.all():
            assert level.title
            assert level.instructions
            assert level.help_text
            assert level.starter_code.strip()

    def test_commands_actions(self, bundled: LevelRepository):
        assert bundled.get("level1").allowed_actions == {"moveLeft", "jump"}

    def test_loops_layout(self, bundled: LevelRepository):
        level = bundled.get("level4")
        assert len(level.layout.targets) == 3
        assert level.pacing_ms == 500

    def test_free_roam_layout(self, bundled: LevelRepository):
        layout = bundled.get("level5").layout
        assert len(layout.obstacles) == 3
        assert len(layout.targets) == 4
        assert layout.enemy is not None

    def test_conditionals_have_enemy(self, bundled: LevelRepository):
        level = bundled.get("level3")
        assert level.layout.enemy is not None
        assert level.retreat_action == "moveBack"

    def test_next_key(self, bundled: LevelRepository):
        assert bundled.next_key("level1") == "level2"
        assert bundled.next_key("level5") is None

    def test_get_unknown(self, bundled: LevelRepository):
        with pytest.raises(KeyError):
            bundled.get("level99")


# ---------------------------------------------------------------------------
# Loading from a directory
# ---------------------------------------------------------------------------

class TestLoading:
    def test_numeric_sort(self, levels_dir: Path):
        for n in (10, 2, 1):
            _write(levels_dir, f"level{n}.yaml", MINIMAL_LEVEL)
        repo = LevelRepository(base_dir=levels_dir)
        assert repo.keys() == ["level1", "level2", "level10"]
        assert repo.get("level10").number == 3

    def test_non_numeric_names_last(self, levels_dir: Path):
        _write(levels_dir, "level1.yaml", MINIMAL_LEVEL)
        _write(levels_dir, "level_bonus.yaml", MINIMAL_LEVEL)
        assert LevelRepository(base_dir=levels_dir).keys() == ["level1", "level_bonus"]

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            LevelRepository(base_dir=tmp_path / "nope")

    def test_empty_directory(self, levels_dir: Path):
        with pytest.raises(ValueError, match="No level files"):
            LevelRepository(base_dir=levels_dir)

    def test_defaults(self, levels_dir: Path):
        _write(levels_dir, "level1.yaml", MINIMAL_LEVEL)
        level = LevelRepository(base_dir=levels_dir).get("level1")
        assert level.retreat_action == "moveBack"
        assert level.pacing_ms is None
        assert level.layout.speed == 5
        assert level.layout.enemy is None
        assert level.layout.targets == ()

    def test_missing_title(self, levels_dir: Path):
        _write(levels_dir, "level1.yaml", MINIMAL_LEVEL.replace("title: Tiny", "title: ''"))
        with pytest.raises(ValueError, match="level1.yaml"):
            LevelRepository(base_dir=levels_dir)

    def test_unknown_kind(self, levels_dir: Path):
        _write(levels_dir, "level1.yaml", MINIMAL_LEVEL.replace("kind: commands", "kind: puzzles"))
        with pytest.raises(ValueError, match="unknown level kind"):
            LevelRepository(base_dir=levels_dir)

    def test_unknown_action(self, levels_dir: Path):
        _write(levels_dir, "level1.yaml", MINIMAL_LEVEL.replace("[moveLeft, jump]", "[moveLeft, fly]"))
        with pytest.raises(ValueError, match="fly"):
            LevelRepository(base_dir=levels_dir)

    def test_goal_missing_field(self, levels_dir: Path):
        _write(levels_dir, "level1.yaml", MINIMAL_LEVEL.replace(", height: 50", ""))
        with pytest.raises(ValueError, match="height"):
            LevelRepository(base_dir=levels_dir)

    def test_empty_file(self, levels_dir: Path):
        _write(levels_dir, "level1.yaml", "")
        with pytest.raises(ValueError):
            LevelRepository(base_dir=levels_dir)


# ---------------------------------------------------------------------------
# Completion predicates
# ---------------------------------------------------------------------------

def _descriptor(kind: str, **layout_extra) -> LevelDescriptor:
    layout = {
        "start": {"x": 50, "y": 200},
        "goal": {"x": 500, "y": 200, "width": 100, "height": 50},
    }
    layout.update(layout_extra)
    raw = {"title": "T", "kind": kind, "allowed_actions": ["shoot"], "layout": layout}
    return parse_level("levelX", 1, raw, "levelX.yaml")


class TestCompletionPredicates:
    def test_every_kind_has_predicate(self):
        assert set(COMPLETION_PREDICATES) == set(LevelKind)

    def test_commands_needs_both_techniques(self):
        level = _descriptor("commands", goal_x_bound=100)
        world = WorldState.from_layout(level.layout)
        world.x = 100
        assert not level.is_complete(world, TechniqueFlags(moved_left=True))
        assert level.is_complete(world, TechniqueFlags(moved_left=True, jumped=True))

    def test_commands_right_of_bound(self):
        level = _descriptor("commands", goal_x_bound=100)
        world = WorldState.from_layout(level.layout)
        flags = TechniqueFlags(moved_left=True, jumped=True)
        world.x = 101
        assert not level.is_complete(world, flags)

    def test_variables_needs_goal_and_variable(self):
        level = _descriptor("variables")
        world = WorldState.from_layout(level.layout)
        world.x = 550
        assert not level.is_complete(world, TechniqueFlags())
        assert level.is_complete(world, TechniqueFlags(used_variable=True))

    def test_conditionals_needs_handled_enemy(self):
        level = _descriptor("conditionals")
        world = WorldState.from_layout(level.layout)
        world.x = 500
        assert not level.is_complete(world, TechniqueFlags(used_conditional=True))
        assert level.is_complete(world, TechniqueFlags(used_conditional=True, handled_enemy=True))

    def test_loops_needs_targets_loop_and_goal(self):
        targets = [{"x": 200, "y": 100, "width": 30, "height": 30}]
        level = _descriptor("loops", targets=targets)
        world = WorldState.from_layout(level.layout)
        flags = TechniqueFlags(used_loop=True, looped_shoot=True)
        world.x = 500
        assert not level.is_complete(world, flags)
        world.shoot()
        assert level.is_complete(world, flags)
        assert not level.is_complete(world, TechniqueFlags())

    def test_free_roam(self):
        targets = [{"x": 200, "y": 100, "width": 30, "height": 30}]
        level = _descriptor("free_roam", targets=targets)
        world = WorldState.from_layout(level.layout)
        world.shoot()
        assert not level.is_complete(world, TechniqueFlags())
        world.x = 520
        assert level.is_complete(world, TechniqueFlags())
