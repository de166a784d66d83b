from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional

from codequest.core.events import (
    AnimationEvent,
    EnemyMoved,
    EventHub,
    GameEvent,
    Moved,
    PacingTick,
    StatusChanged,
)
from codequest.core.interpreter import Interpreter, ScriptIssue, TechniqueFlags
from codequest.core.levels import LevelDescriptor
from codequest.core.script import ScriptParser
from codequest.core.world import EnemySchedule, WorldSnapshot, WorldState

logger = logging.getLogger(__name__)

RUN_BANNER = "--- Running your code ---"
COMPLETED_MESSAGE = "Congratulations! Level completed!"
OBSTACLE_MESSAGE = "Ouch! You hit an obstacle."


class LevelStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class RunResult:
    """Outcome of one script run."""

    log: List[str]
    completed: bool
    issues: List[ScriptIssue] = field(default_factory=list)
    snapshot: Optional[WorldSnapshot] = None


class ScriptRun:
    """A script run that can be paused at loop pacing points and cancelled.

    Call :meth:`advance` repeatedly: each call executes up to the next pacing
    point and returns the delay (in milliseconds) the caller should wait
    before calling again, or ``None`` once the run has finished.
    """

    def __init__(self, session: "LevelSession", interpreter: Interpreter, steps: Iterator[AnimationEvent]) -> None:
        self._session = session
        self._interpreter = interpreter
        self._steps = steps
        self._result: Optional[RunResult] = None
        self._cancelled = False

    @property
    def finished(self) -> bool:
        """True once the run has completed or been cancelled."""
        return self._result is not None or self._cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def log(self) -> List[str]:
        """Trace lines produced so far."""
        return self._interpreter.log

    @property
    def result(self) -> Optional[RunResult]:
        """Final result, available after the last :meth:`advance`."""
        return self._result

    def advance(self) -> Optional[int]:
        if self.finished:
            return None
        for event in self._steps:
            self._session._publish(event)
            if isinstance(event, PacingTick):
                return event.delay_ms
        self._result = self._session._finish_run(self._interpreter)
        return None

    def run_to_end(self) -> RunResult:
        """Execute the remaining statements without pausing."""
        while self.advance() is not None:
            pass
        if self._result is None:
            raise RuntimeError("run was cancelled")
        return self._result

    def cancel(self) -> None:
        if self.finished:
            return
        self._cancelled = True
        self._steps.close()
        self._session._abandon_run(self)


class LevelSession:
    """State machine for one attempt at a level.

    The session owns the world, the variable store and the technique flags.
    ``IDLE`` turns into ``RUNNING`` while a script executes; when a run ends
    the completion predicate is checked and the session either becomes
    ``COMPLETED`` or returns to ``IDLE``. ``COMPLETED`` is kept until
    :meth:`reset`, no matter what later runs do.
    """

    def __init__(self, descriptor: LevelDescriptor, pacing_ms: int = 0) -> None:
        self._descriptor = descriptor
        self._default_pacing_ms = pacing_ms
        self._parser = ScriptParser(descriptor.allowed_actions)
        self._events = EventHub()
        self._variables: Dict[str, int] = {}
        self._flags = TechniqueFlags()
        self._world = WorldState.from_layout(descriptor.layout)
        self._status = LevelStatus.IDLE
        self._completed = False
        self._active_run: Optional[ScriptRun] = None
        self._runs = 0
        self._enemy: Optional[EnemySchedule] = None
        if descriptor.layout.enemy is not None:
            self._enemy = EnemySchedule(self._world, descriptor.layout.enemy)
            self._enemy.start()

    @property
    def descriptor(self) -> LevelDescriptor:
        return self._descriptor

    @property
    def status(self) -> LevelStatus:
        return self._status

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def running(self) -> bool:
        return self._active_run is not None

    @property
    def runs(self) -> int:
        """Number of runs finished since the last reset."""
        return self._runs

    @property
    def variables(self) -> Dict[str, int]:
        """Copy of the variable store."""
        return dict(self._variables)

    @property
    def flags(self) -> TechniqueFlags:
        return self._flags

    @property
    def world(self) -> WorldState:
        return self._world

    @property
    def enemy_schedule(self) -> Optional[EnemySchedule]:
        return self._enemy

    @property
    def pacing_ms(self) -> int:
        """Delay between loop iterations; the level's own value wins over the default."""
        if self._descriptor.pacing_ms is not None:
            return self._descriptor.pacing_ms
        return self._default_pacing_ms

    def snapshot(self) -> WorldSnapshot:
        return self._world.snapshot()

    def subscribe(self, listener: Callable[[GameEvent], None]) -> Callable[[], None]:
        return self._events.subscribe(listener)

    def help(self) -> str:
        return self._descriptor.help_text

    def run(self, script: str) -> RunResult:
        """Run *script* to the end and return its trace and the completion state."""
        return self.start_run(script, pacing_ms=0).run_to_end()

    def start_run(self, script: str, pacing_ms: Optional[int] = None) -> ScriptRun:
        if self._active_run is not None:
            raise RuntimeError("A script is already running on this level")
        statements = self._parser.parse(script)
        interpreter = Interpreter(
            self._world,
            self._variables,
            self._flags,
            retreat_action=self._descriptor.retreat_action,
            pacing_ms=self.pacing_ms if pacing_ms is None else pacing_ms,
            log=[RUN_BANNER],
        )
        run = ScriptRun(self, interpreter, interpreter.execute(statements))
        self._active_run = run
        logger.info("Running %d statement(s) on %s", len(statements), self._descriptor.key)
        self._set_status(LevelStatus.RUNNING)
        return run

    def reset(self) -> str:
        """Return the level to its initial state and hand back the starter code."""
        if self._active_run is not None:
            self._active_run.cancel()
        if self._enemy is not None:
            self._enemy.stop()
        self._variables.clear()
        self._flags.clear()
        self._world = WorldState.from_layout(self._descriptor.layout)
        self._runs = 0
        self._completed = False
        self._status = LevelStatus.IDLE
        if self._enemy is not None:
            self._enemy.restart(self._world)
            snapshot = self._world.snapshot()
            self._publish(EnemyMoved(near=snapshot.enemy_near, x=snapshot.enemy_x))
        logger.info("Level %s reset", self._descriptor.key)
        self._publish(StatusChanged(self._status.value))
        return self._descriptor.starter_code

    def tick_enemy(self) -> Optional[bool]:
        """Advance the enemy schedule one phase; None if there is nothing to advance."""
        if self._enemy is None:
            return None
        near = self._enemy.advance()
        if near is not None:
            self._publish(EnemyMoved(near=near, x=self._world.snapshot().enemy_x))
        return near

    def _finish_run(self, interpreter: Interpreter) -> RunResult:
        self._active_run = None
        self._runs += 1
        log = interpreter.log

        obstacle = self._world.colliding_obstacle()
        if obstacle is not None:
            self._world.move_back()
            log.append(OBSTACLE_MESSAGE)
            self._publish(Moved("moveBack", self._world.x, self._world.y))

        if not self._completed and self._descriptor.is_complete(self._world, self._flags):
            self._completed = True
            log.append(COMPLETED_MESSAGE)
            logger.info("Level %s completed after %d run(s)", self._descriptor.key, self._runs)
            if self._enemy is not None:
                self._enemy.stop()
        self._set_status(self._resting_status())

        return RunResult(
            log=list(log),
            completed=self.completed,
            issues=list(interpreter.issues),
            snapshot=self._world.snapshot(),
        )

    def _abandon_run(self, run: ScriptRun) -> None:
        if self._active_run is run:
            self._active_run = None
            self._set_status(self._resting_status())
            logger.info("Run on %s cancelled", self._descriptor.key)

    def _resting_status(self) -> LevelStatus:
        return LevelStatus.COMPLETED if self._completed else LevelStatus.IDLE

    def _set_status(self, status: LevelStatus) -> None:
        self._status = status
        self._publish(StatusChanged(status.value))

    def _publish(self, event: GameEvent) -> None:
        self._events.publish(event)
