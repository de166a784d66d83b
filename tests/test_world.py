"""Tests for codequest.core.world – world state and enemy schedule."""

from __future__ import annotations

import pytest

from codequest.core.world import (
    ENEMY_CYCLE,
    ENEMY_FLAG,
    EnemyLayout,
    EnemySchedule,
    Entity,
    LevelLayout,
    WorldState,
)


def _layout(**overrides) -> LevelLayout:
    values = dict(
        start_x=100,
        start_y=200,
        goal=Entity(x=500, y=200, width=100, height=50),
        targets=(Entity(200, 100, 30, 30), Entity(300, 150, 30, 30)),
        obstacles=(Entity(120, 200, 30, 100),),
        enemy=EnemyLayout(near_x=200, far_x=300, y=200),
    )
    values.update(overrides)
    return LevelLayout(**values)


# ---------------------------------------------------------------------------
# Entity
# ---------------------------------------------------------------------------

class TestEntity:
    def test_contains_inside(self):
        assert Entity(0, 0, 10, 10).contains(5, 5)

    def test_contains_edges_inclusive(self):
        e = Entity(0, 200, 100, 50)
        assert e.contains(0, 200)
        assert e.contains(100, 250)

    def test_outside(self):
        assert not Entity(0, 0, 10, 10).contains(11, 5)


# ---------------------------------------------------------------------------
# WorldState – construction
# ---------------------------------------------------------------------------

class TestFromLayout:
    def test_start_position_and_speed(self):
        world = WorldState.from_layout(_layout())
        assert (world.x, world.y) == (100, 200)
        assert world.speed == 5

    def test_entities_are_copies(self):
        layout = _layout()
        world = WorldState.from_layout(layout)
        world.shoot()
        assert layout.targets[0].hit is False
        assert WorldState.from_layout(layout).targets_hit == 0

    def test_enemy_starts_far(self):
        world = WorldState.from_layout(_layout())
        assert world.enemy.x == 300
        assert world.flag(ENEMY_FLAG) is False

    def test_no_enemy_no_flag(self):
        world = WorldState.from_layout(_layout(enemy=None))
        assert world.enemy is None
        assert world.flag(ENEMY_FLAG) is None


# ---------------------------------------------------------------------------
# WorldState – movement and speed
# ---------------------------------------------------------------------------

class TestMovement:
    def test_move_right_uses_speed(self):
        world = WorldState.from_layout(_layout())
        assert world.move_right() == 150

    def test_move_left_clamped_at_zero(self):
        world = WorldState.from_layout(_layout(start_x=20))
        assert world.move_left() == 0

    def test_move_right_clamped_at_edge(self):
        world = WorldState.from_layout(_layout(start_x=900))
        world.set_speed(20)
        assert world.move_right() == world.max_x == 924

    def test_move_back_returns_to_start(self):
        world = WorldState.from_layout(_layout())
        world.move_right()
        world.move_right()
        assert world.move_back() == 100

    @pytest.mark.parametrize("value", [1, 10, 20])
    def test_set_speed_in_range(self, value: int):
        world = WorldState.from_layout(_layout())
        assert world.set_speed(value) is True
        assert world.speed == value

    @pytest.mark.parametrize("value", [0, 21, 100])
    def test_set_speed_out_of_range(self, value: int):
        world = WorldState.from_layout(_layout())
        assert world.set_speed(value) is False
        assert world.speed == 5


# ---------------------------------------------------------------------------
# WorldState – targets, goal and obstacles
# ---------------------------------------------------------------------------

class TestTargetsAndGoal:
    def test_shoot_hits_in_order(self):
        world = WorldState.from_layout(_layout())
        assert world.shoot() == 0
        assert world.shoot() == 1
        assert world.all_targets_hit()

    def test_shoot_with_nothing_left(self):
        world = WorldState.from_layout(_layout())
        world.shoot()
        world.shoot()
        assert world.shoot() is None
        assert world.targets_hit == 2

    def test_in_goal(self):
        world = WorldState.from_layout(_layout(start_x=500))
        assert world.in_goal()

    def test_not_in_goal(self):
        assert not WorldState.from_layout(_layout()).in_goal()

    def test_colliding_obstacle(self):
        world = WorldState.from_layout(_layout())
        assert world.colliding_obstacle() is world.obstacles[0]

    def test_clear_of_obstacles(self):
        world = WorldState.from_layout(_layout(start_x=300))
        assert world.colliding_obstacle() is None

    def test_snapshot(self):
        world = WorldState.from_layout(_layout())
        world.shoot()
        snap = world.snapshot()
        assert snap.x == 100
        assert snap.targets_hit == (True, False)
        assert snap.hit_count == 1
        assert snap.enemy_near is False
        assert snap.enemy_x == 300


# ---------------------------------------------------------------------------
# EnemySchedule
# ---------------------------------------------------------------------------

class TestEnemySchedule:
    @pytest.fixture()
    def world(self) -> WorldState:
        return WorldState.from_layout(_layout())

    def _schedule(self, world: WorldState) -> EnemySchedule:
        schedule = EnemySchedule(world, _layout().enemy)
        schedule.start()
        return schedule

    def test_follows_cycle(self, world: WorldState):
        schedule = self._schedule(world)
        seen = [schedule.advance() for _ in range(len(ENEMY_CYCLE))]
        assert seen == list(ENEMY_CYCLE[1:]) + [ENEMY_CYCLE[0]]

    def test_first_tick_brings_enemy_near(self, world: WorldState):
        schedule = self._schedule(world)
        assert schedule.advance() is True
        assert world.flag(ENEMY_FLAG) is True
        assert world.enemy.x == 200

    def test_stopped_schedule_does_nothing(self, world: WorldState):
        schedule = self._schedule(world)
        schedule.stop()
        assert schedule.advance() is None
        assert world.flag(ENEMY_FLAG) is False
        assert schedule.phase == 0

    def test_restart_applies_first_phase(self, world: WorldState):
        schedule = self._schedule(world)
        schedule.advance()
        fresh = WorldState.from_layout(_layout())
        schedule.restart(fresh)
        assert schedule.phase == 0
        assert schedule.running
        assert fresh.flag(ENEMY_FLAG) is False
        schedule.advance()
        assert fresh.flag(ENEMY_FLAG) is True
        assert world.flag(ENEMY_FLAG) is True

    def test_custom_cycle(self, world: WorldState):
        schedule = EnemySchedule(world, _layout().enemy, cycle=(True, True))
        assert world.flag(ENEMY_FLAG) is True
        schedule.start()
        assert schedule.advance() is True

    def test_empty_cycle_rejected(self, world: WorldState):
        with pytest.raises(ValueError):
            EnemySchedule(world, _layout().enemy, cycle=())
