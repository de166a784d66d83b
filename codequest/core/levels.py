from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

import yaml

from codequest.core.interpreter import TechniqueFlags
from codequest.core.script import ACTION_NAMES
from codequest.core.world import DEFAULT_SPEED, EnemyLayout, Entity, LevelLayout, WorldState

logger = logging.getLogger(__name__)

CompletionPredicate = Callable[[WorldState, TechniqueFlags], bool]


class LevelKind(Enum):
    COMMANDS = "commands"
    VARIABLES = "variables"
    CONDITIONALS = "conditionals"
    LOOPS = "loops"
    FREE_ROAM = "free_roam"


def _commands_complete(world: WorldState, flags: TechniqueFlags) -> bool:
    bound = world.goal_x_bound if world.goal_x_bound is not None else world.goal.x
    return world.x <= bound and flags.moved_left and flags.jumped


def _variables_complete(world: WorldState, flags: TechniqueFlags) -> bool:
    return world.in_goal() and flags.used_variable


def _conditionals_complete(world: WorldState, flags: TechniqueFlags) -> bool:
    return world.in_goal() and flags.handled_enemy


def _loops_complete(world: WorldState, flags: TechniqueFlags) -> bool:
    return world.all_targets_hit() and flags.looped_shoot and world.in_goal()


def _free_roam_complete(world: WorldState, flags: TechniqueFlags) -> bool:
    return world.all_targets_hit() and world.in_goal()


COMPLETION_PREDICATES: Dict[LevelKind, CompletionPredicate] = {
    LevelKind.COMMANDS: _commands_complete,
    LevelKind.VARIABLES: _variables_complete,
    LevelKind.CONDITIONALS: _conditionals_complete,
    LevelKind.LOOPS: _loops_complete,
    LevelKind.FREE_ROAM: _free_roam_complete,
}


@dataclass(frozen=True)
class LevelDescriptor:
    """Everything the engine needs to know about one level, loaded from YAML."""

    key: str
    number: int
    kind: LevelKind
    title: str
    instructions: str
    starter_code: str
    help_text: str
    allowed_actions: FrozenSet[str]
    layout: LevelLayout
    retreat_action: str = "moveBack"
    pacing_ms: Optional[int] = None

    @property
    def completion_predicate(self) -> CompletionPredicate:
        return COMPLETION_PREDICATES[self.kind]

    def is_complete(self, world: WorldState, flags: TechniqueFlags) -> bool:
        return self.completion_predicate(world, flags)


def _entity(raw: Any, where: str) -> Entity:
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: expected a mapping with x, y, width and height")
    try:
        return Entity(
            x=float(raw["x"]),
            y=float(raw["y"]),
            width=float(raw["width"]),
            height=float(raw["height"]),
        )
    except KeyError as e:
        raise ValueError(f"{where}: missing {e.args[0]!r}") from None
    except (TypeError, ValueError):
        raise ValueError(f"{where}: coordinates must be numbers") from None


def _entities(raw: Any, where: str) -> Tuple[Entity, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValueError(f"{where}: expected a list")
    return tuple(_entity(item, f"{where}[{i}]") for i, item in enumerate(raw))


def parse_layout(raw: Any, source: str) -> LevelLayout:
    if not isinstance(raw, dict):
        raise ValueError(f"{source}: missing or invalid 'layout'")
    start = raw.get("start")
    if not isinstance(start, dict) or "x" not in start or "y" not in start:
        raise ValueError(f"{source}: layout needs 'start' with x and y")

    enemy = None
    raw_enemy = raw.get("enemy")
    if raw_enemy is not None:
        if not isinstance(raw_enemy, dict):
            raise ValueError(f"{source}: layout 'enemy' must be a mapping")
        try:
            enemy = EnemyLayout(
                near_x=float(raw_enemy["near_x"]),
                far_x=float(raw_enemy["far_x"]),
                y=float(raw_enemy["y"]),
                size=float(raw_enemy.get("size", 40)),
            )
        except KeyError as e:
            raise ValueError(f"{source}: enemy missing {e.args[0]!r}") from None

    bound = raw.get("goal_x_bound")
    return LevelLayout(
        start_x=float(start["x"]),
        start_y=float(start["y"]),
        goal=_entity(raw.get("goal"), f"{source}: goal"),
        goal_x_bound=float(bound) if bound is not None else None,
        speed=int(raw.get("speed", DEFAULT_SPEED)),
        playable_width=float(raw.get("playable_width", 1004)),
        character_width=float(raw.get("character_width", 80)),
        targets=_entities(raw.get("targets"), f"{source}: targets"),
        obstacles=_entities(raw.get("obstacles"), f"{source}: obstacles"),
        enemy=enemy,
    )


def parse_level(key: str, number: int, raw: Any, source: str) -> LevelDescriptor:
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"{source}: expected YAML with 'title', 'kind' and 'layout'")
    title = raw.get("title")
    if not title or not isinstance(title, str):
        raise ValueError(f"{source}: missing or invalid 'title'")
    try:
        kind = LevelKind(raw.get("kind"))
    except ValueError:
        raise ValueError(f"{source}: unknown level kind {raw.get('kind')!r}") from None

    actions = raw.get("allowed_actions")
    if not isinstance(actions, list) or not actions:
        raise ValueError(f"{source}: 'allowed_actions' must be a non-empty list")
    unknown = sorted(set(map(str, actions)).difference(ACTION_NAMES))
    if unknown:
        raise ValueError(f"{source}: unknown actions {', '.join(unknown)}")

    pacing = raw.get("pacing_ms")
    return LevelDescriptor(
        key=key,
        number=number,
        kind=kind,
        title=title.strip(),
        instructions=str(raw.get("instructions", "")).strip(),
        # keep trailing blank lines so the editor opens below the comments
        starter_code=str(raw.get("starter_code", "")),
        help_text=str(raw.get("help", "")).strip(),
        allowed_actions=frozenset(map(str, actions)),
        layout=parse_layout(raw.get("layout"), source),
        retreat_action=str(raw.get("retreat_action", "moveBack")),
        pacing_ms=int(pacing) if pacing is not None else None,
    )


class LevelRepository:
    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir or Path(__file__).resolve().parent.parent / "data" / "levels"
        self._levels = self._load_levels()

    def all(self) -> List[LevelDescriptor]:
        return list(self._levels.values())

    def get(self, key: str) -> LevelDescriptor:
        return self._levels[key]

    def keys(self) -> List[str]:
        return list(self._levels)

    def next_key(self, key: str) -> Optional[str]:
        """Key of the level after *key*, or None for the last level."""
        keys = self.keys()
        index = keys.index(key)
        return keys[index + 1] if index + 1 < len(keys) else None

    def _load_levels(self) -> Dict[str, LevelDescriptor]:
        base_dir = self._base_dir
        if not base_dir.exists():
            raise FileNotFoundError(f"Levels directory not found: {base_dir}")

        levels: Dict[str, LevelDescriptor] = {}

        def _sort_key(p: Path) -> tuple[int, str]:
            m = re.match(r"^level(\d+)$", p.stem)
            if m:
                return (int(m.group(1)), p.stem)
            return (10**9, p.stem)

        for number, level_path in enumerate(sorted(base_dir.glob("level*.yaml"), key=_sort_key), start=1):
            raw = yaml.safe_load(level_path.read_text(encoding="utf-8"))
            levels[level_path.stem] = parse_level(level_path.stem, number, raw, level_path.name)

        if not levels:
            raise ValueError("No level files (level*.yaml) found in data/levels")
        logger.info("Loaded %d level(s) from %s", len(levels), base_dir)
        return levels
