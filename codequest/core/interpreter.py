"""Execution engine: runs recognized statements against the world."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Callable, Dict, Iterator, List, MutableMapping, Optional, Sequence

from codequest.core.events import AnimationEvent, Jumped, Moved, PacingTick, Shot, SpeedChanged
from codequest.core.script import (
    ActionCall,
    Assignment,
    Conditional,
    ForLoop,
    MalformedLoop,
    Statement,
    UnrecognizedStatement,
)
from codequest.core.world import MAX_SPEED, MIN_SPEED, WorldState

logger = logging.getLogger(__name__)


class IssueKind(Enum):
    UNRECOGNIZED_STATEMENT = "unrecognized_statement"
    UNDEFINED_VARIABLE = "undefined_variable"
    OUT_OF_RANGE_VALUE = "out_of_range_value"
    MALFORMED_LOOP_BOUNDS = "malformed_loop_bounds"
    UNKNOWN_CONDITION = "unknown_condition"


@dataclass(frozen=True)
class ScriptIssue:
    """A non-fatal problem found while running a script."""

    kind: IssueKind
    message: str


@dataclass
class TechniqueFlags:
    """Which programming techniques the player has used during this attempt."""

    moved_left: bool = False
    jumped: bool = False
    used_variable: bool = False
    used_conditional: bool = False
    handled_enemy: bool = False
    used_loop: bool = False
    looped_shoot: bool = False

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, False)


class Interpreter:
    """Executes statements in source order.

    :meth:`execute` is a generator. It yields an animation event for every
    visible action and a :class:`PacingTick` between loop iterations; those
    ticks are the only places a caller may pause or abandon the run. All state
    changes of a statement happen before its events are yielded.
    """

    def __init__(
        self,
        world: WorldState,
        variables: MutableMapping[str, int],
        flags: TechniqueFlags,
        *,
        retreat_action: str = "moveBack",
        pacing_ms: int = 0,
        log: Optional[List[str]] = None,
    ) -> None:
        self._world = world
        self._variables = variables
        self._flags = flags
        self._retreat_action = retreat_action
        self._pacing_ms = pacing_ms
        self.log: List[str] = log if log is not None else []
        self.issues: List[ScriptIssue] = []
        self._actions: Dict[str, Callable[[ActionCall], Iterator[AnimationEvent]]] = {
            "moveLeft": self._move_left,
            "moveRight": self._move_right,
            "jump": self._jump,
            "shoot": self._shoot,
            "moveBack": self._move_back,
            "setSpeed": self._set_speed,
        }

    def execute(self, statements: Sequence[Statement]) -> Iterator[AnimationEvent]:
        for statement in statements:
            yield from self._execute_statement(statement)

    def _execute_statement(self, statement: Statement) -> Iterator[AnimationEvent]:
        if isinstance(statement, Assignment):
            self._variables[statement.name] = statement.value
            self._say(f"Variable created: {statement.name} = {statement.value}")
        elif isinstance(statement, ActionCall):
            yield from self._call(statement)
        elif isinstance(statement, Conditional):
            yield from self._conditional(statement)
        elif isinstance(statement, ForLoop):
            yield from self._loop(statement)
        elif isinstance(statement, MalformedLoop):
            self._report(
                IssueKind.MALFORMED_LOOP_BOUNDS,
                f"Error: Skipping loop '{statement.text}': {statement.reason}",
            )
        elif isinstance(statement, UnrecognizedStatement):
            self._report(IssueKind.UNRECOGNIZED_STATEMENT, f"Unrecognized command: {statement.text}")
        else:
            raise TypeError(f"Unsupported statement: {statement!r}")

    def _call(self, call: ActionCall) -> Iterator[AnimationEvent]:
        handler = self._actions.get(call.name)
        if handler is None:
            self._report(IssueKind.UNRECOGNIZED_STATEMENT, f"Unrecognized command: {call.name}()")
            return
        yield from handler(call)

    def _conditional(self, statement: Conditional) -> Iterator[AnimationEvent]:
        # Read once: the enemy schedule may flip the flag while the body runs.
        value = self._world.flag(statement.condition)
        if value is None:
            self._report(
                IssueKind.UNKNOWN_CONDITION,
                f"Error: Unknown condition '{statement.condition}', skipping if block",
            )
            return
        self._say(f"Checking condition: {statement.condition} is {str(value).lower()}")
        if not value:
            self._say("Condition is false, skipping if block")
            return
        self._say("Condition is true, executing if block")
        self._flags.used_conditional = True
        if statement.contains_action(self._retreat_action):
            self._flags.handled_enemy = True
        for inner in statement.body:
            yield from self._execute_statement(inner)

    def _loop(self, loop: ForLoop) -> Iterator[AnimationEvent]:
        self._say(f"Executing for loop with {loop.var_name} from {loop.start} to {loop.end - 1}")
        for i in range(loop.start, loop.end):
            if i > loop.start:
                yield PacingTick(iteration=i, delay_ms=self._pacing_ms)
            self._say(f"Loop iteration: {loop.var_name} = {i}")
            for inner in loop.body:
                yield from self._execute_statement(inner)
        if loop.iterations and loop.has_action():
            self._flags.used_loop = True
            if loop.contains_action("shoot"):
                self._flags.looped_shoot = True

    def _move_left(self, call: ActionCall) -> Iterator[AnimationEvent]:
        self._say("Executing: moveLeft()")
        self._world.move_left()
        self._flags.moved_left = True
        yield Moved("moveLeft", self._world.x, self._world.y)

    def _move_right(self, call: ActionCall) -> Iterator[AnimationEvent]:
        self._say("Executing: moveRight()")
        self._world.move_right()
        yield Moved("moveRight", self._world.x, self._world.y)

    def _move_back(self, call: ActionCall) -> Iterator[AnimationEvent]:
        self._say("Executing: moveBack()")
        self._world.move_back()
        yield Moved("moveBack", self._world.x, self._world.y)

    def _jump(self, call: ActionCall) -> Iterator[AnimationEvent]:
        self._say("Executing: jump()")
        self._flags.jumped = True
        yield Jumped(self._world.x, self._world.y)

    def _shoot(self, call: ActionCall) -> Iterator[AnimationEvent]:
        self._say("Executing: shoot()")
        index = self._world.shoot()
        if index is not None:
            self._say(f"Target hit! ({self._world.targets_hit}/{len(self._world.targets)})")
        elif self._world.targets:
            self._say("No targets left to hit")
        yield Shot(self._world.x, self._world.y, index)

    def _set_speed(self, call: ActionCall) -> Iterator[AnimationEvent]:
        arg = call.arg
        if isinstance(arg, str):
            if arg not in self._variables:
                self._report(IssueKind.UNDEFINED_VARIABLE, f"Error: Variable '{arg}' not defined")
                return
            value = self._variables[arg]
        else:
            value = int(arg)

        if not self._world.set_speed(value):
            self._report(
                IssueKind.OUT_OF_RANGE_VALUE,
                f"Error: Speed must be between {MIN_SPEED} and {MAX_SPEED} (got {value})",
            )
            return

        if isinstance(arg, str):
            self._flags.used_variable = True
            self._say(f"Set speed to {value} using variable {arg}")
        else:
            self._say(f"Set speed to {value}")
        yield SpeedChanged(value)

    def _say(self, line: str) -> None:
        logger.debug(line)
        self.log.append(line)

    def _report(self, kind: IssueKind, message: str) -> None:
        self.issues.append(ScriptIssue(kind, message))
        self._say(message)

