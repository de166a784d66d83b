"""Notifications emitted while a level is played, and a small observer hub."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Union


@dataclass(frozen=True)
class Moved:
    action: str
    x: float
    y: float


@dataclass(frozen=True)
class Jumped:
    x: float
    y: float


@dataclass(frozen=True)
class Shot:
    x: float
    y: float
    target_index: Optional[int]


@dataclass(frozen=True)
class PacingTick:
    """Pause requested between two loop iterations so the UI can animate."""

    iteration: int
    delay_ms: int


@dataclass(frozen=True)
class SpeedChanged:
    speed: int


@dataclass(frozen=True)
class EnemyMoved:
    near: bool
    x: Optional[float]


@dataclass(frozen=True)
class StatusChanged:
    status: str


AnimationEvent = Union[Moved, Jumped, Shot, PacingTick, SpeedChanged]
GameEvent = Union[Moved, Jumped, Shot, PacingTick, SpeedChanged, EnemyMoved, StatusChanged]
Listener = Callable[[GameEvent], None]


class EventHub:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
