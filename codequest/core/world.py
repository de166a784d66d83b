"""Simulated world for a level attempt: the character, its entities and the enemy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

STEP_UNIT = 10
MIN_SPEED = 1
MAX_SPEED = 20
DEFAULT_SPEED = 5

ENEMY_FLAG = "enemyNear"
# far, near, far, far, near - then repeat
ENEMY_CYCLE: Tuple[bool, ...] = (False, True, False, False, True)


@dataclass
class Entity:
    """Axis-aligned rectangle owned by a level (goal, obstacle, target or enemy)."""

    x: float
    y: float
    width: float
    height: float
    active: bool = True
    hit: bool = False

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.x + self.width and self.y <= y <= self.y + self.height


@dataclass(frozen=True)
class EnemyLayout:
    near_x: float
    far_x: float
    y: float
    size: float = 40


@dataclass(frozen=True)
class LevelLayout:
    """Initial entity configuration of a level, as read from its YAML file."""

    start_x: float
    start_y: float
    goal: Entity
    goal_x_bound: Optional[float] = None
    speed: int = DEFAULT_SPEED
    playable_width: float = 1004
    character_width: float = 80
    character_height: float = 48
    targets: Tuple[Entity, ...] = ()
    obstacles: Tuple[Entity, ...] = ()
    enemy: Optional[EnemyLayout] = None


@dataclass(frozen=True)
class WorldSnapshot:
    """Read-only view of the world handed to the presentation layer."""

    x: float
    y: float
    speed: int
    targets_hit: Tuple[bool, ...]
    enemy_near: bool
    enemy_x: Optional[float]

    @property
    def hit_count(self) -> int:
        return sum(self.targets_hit)


@dataclass
class WorldState:
    x: float
    y: float
    speed: int
    start_x: float
    start_y: float
    goal: Entity
    goal_x_bound: Optional[float] = None
    playable_width: float = 1004
    character_width: float = 80
    targets: List[Entity] = field(default_factory=list)
    obstacles: List[Entity] = field(default_factory=list)
    enemy: Optional[Entity] = None
    flags: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_layout(cls, layout: LevelLayout) -> "WorldState":
        enemy = None
        flags: Dict[str, bool] = {}
        if layout.enemy is not None:
            e = layout.enemy
            enemy = Entity(x=e.far_x, y=e.y, width=e.size, height=e.size)
            flags[ENEMY_FLAG] = False
        return cls(
            x=layout.start_x,
            y=layout.start_y,
            speed=layout.speed,
            start_x=layout.start_x,
            start_y=layout.start_y,
            goal=replace(layout.goal),
            goal_x_bound=layout.goal_x_bound,
            playable_width=layout.playable_width,
            character_width=layout.character_width,
            targets=[replace(t) for t in layout.targets],
            obstacles=[replace(o) for o in layout.obstacles],
            enemy=enemy,
            flags=flags,
        )

    @property
    def max_x(self) -> float:
        return max(0.0, self.playable_width - self.character_width)

    def move_left(self) -> float:
        self.x = max(0.0, self.x - self.speed * STEP_UNIT)
        return self.x

    def move_right(self) -> float:
        self.x = min(self.max_x, self.x + self.speed * STEP_UNIT)
        return self.x

    def move_back(self) -> float:
        self.x = self.start_x
        return self.x

    def set_speed(self, value: int) -> bool:
        """Set the speed if *value* lies in [MIN_SPEED, MAX_SPEED]; return whether it did."""
        if MIN_SPEED <= value <= MAX_SPEED:
            self.speed = value
            return True
        return False

    def shoot(self) -> Optional[int]:
        """Mark the first unhit target as hit and return its index, or None if none remain."""
        for index, target in enumerate(self.targets):
            if target.active and not target.hit:
                target.hit = True
                return index
        return None

    @property
    def targets_hit(self) -> int:
        return sum(1 for t in self.targets if t.hit)

    def all_targets_hit(self) -> bool:
        return all(t.hit for t in self.targets)

    def in_goal(self) -> bool:
        return self.goal.contains(self.x, self.y)

    def colliding_obstacle(self) -> Optional[Entity]:
        for obstacle in self.obstacles:
            if obstacle.active and abs(self.x - obstacle.x) < obstacle.width:
                return obstacle
        return None

    def flag(self, name: str) -> Optional[bool]:
        return self.flags.get(name)

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot(
            x=self.x,
            y=self.y,
            speed=self.speed,
            targets_hit=tuple(t.hit for t in self.targets),
            enemy_near=bool(self.flags.get(ENEMY_FLAG, False)),
            enemy_x=self.enemy.x if self.enemy is not None else None,
        )


class EnemySchedule:
    """Moves the enemy between its far and near spots on a fixed repeating cycle.

    The schedule is driven from outside (a timer in the UI, or tests calling
    :meth:`advance`); it never runs on its own. While stopped, ``advance`` does
    nothing so a late timer callback cannot touch a freshly reset world.
    """

    def __init__(
        self,
        world: WorldState,
        layout: EnemyLayout,
        cycle: Sequence[bool] = ENEMY_CYCLE,
    ) -> None:
        if not cycle:
            raise ValueError("enemy cycle must not be empty")
        self._world = world
        self._layout = layout
        self._cycle = tuple(cycle)
        self._phase = 0
        self._running = False
        self._apply(self._cycle[0])

    @property
    def phase(self) -> int:
        return self._phase

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False

    def restart(self, world: WorldState) -> None:
        """Attach to *world* and start over from the first phase."""
        self._world = world
        self._phase = 0
        self._apply(self._cycle[0])
        self._running = True

    def advance(self) -> Optional[bool]:
        """Apply the next phase; return the new enemy flag, or None while stopped."""
        if not self._running:
            return None
        self._phase = (self._phase + 1) % len(self._cycle)
        near = self._cycle[self._phase]
        self._apply(near)
        logger.debug("Enemy moved %s", "near" if near else "far")
        return near

    def _apply(self, near: bool) -> None:
        self._world.flags[ENEMY_FLAG] = near
        if self._world.enemy is not None:
            self._world.enemy.x = self._layout.near_x if near else self._layout.far_x
