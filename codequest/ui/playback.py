"""Qt timers that pace script runs and drive the enemy schedule."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from codequest.core.session import LevelSession, RunResult, ScriptRun

logger = logging.getLogger(__name__)


class ScriptPlayer(QObject):
    """Plays a :class:`ScriptRun` on the event loop, pausing at each pacing point.

    ``output`` carries the trace lines produced by each step as soon as they
    exist, so the output panel fills in while a paced loop is still running.
    """

    output = Signal(list)
    finished = Signal(object)
    cancelled = Signal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._run: Optional[ScriptRun] = None
        self._flushed = 0
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._step)

    @property
    def busy(self) -> bool:
        return self._run is not None

    def play(self, session: LevelSession, script: str) -> None:
        if self._run is not None:
            raise RuntimeError("A script is already playing")
        self._run = session.start_run(script)
        self._flushed = 0
        self._timer.start(0)

    def cancel(self) -> None:
        """Stop the pending step; safe to call when nothing is playing."""
        self._timer.stop()
        run, self._run = self._run, None
        if run is not None and not run.finished:
            run.cancel()
            self.cancelled.emit()

    def _step(self) -> None:
        run = self._run
        if run is None or run.cancelled:
            self._run = None
            return
        delay = run.advance()
        self._flush(run)
        if delay is not None:
            self._timer.start(delay)
            return
        self._run = None
        result: Optional[RunResult] = run.result
        if result is not None:
            self.finished.emit(result)

    def _flush(self, run: ScriptRun) -> None:
        lines = run.log[self._flushed:]
        if lines:
            self._flushed += len(lines)
            self.output.emit(lines)


class EnemyClock(QObject):
    """Repeating timer that advances the enemy schedule of the current level."""

    def __init__(self, interval_ms: int, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._session: Optional[LevelSession] = None
        self._timer = QTimer(self)
        self._timer.setInterval(max(1, interval_ms))
        self._timer.timeout.connect(self._tick)

    def attach(self, session: Optional[LevelSession]) -> None:
        """Follow *session*; the clock only runs for levels with an enemy."""
        self._timer.stop()
        self._session = session
        if session is not None and session.enemy_schedule is not None:
            self._timer.start()

    def restart(self) -> None:
        self.attach(self._session)

    def stop(self) -> None:
        self._timer.stop()

    def _tick(self) -> None:
        if self._session is None:
            self._timer.stop()
            return
        if self._session.tick_enemy() is None:
            logger.debug("Enemy schedule stopped, halting clock")
            self._timer.stop()
