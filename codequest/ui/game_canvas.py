"""Painted view of the level world."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QRectF, Qt, QTimer
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import QWidget

from codequest.core.events import GameEvent, Jumped, Shot
from codequest.core.session import LevelSession
from codequest.core.world import Entity
from codequest.ui.colors import GameColors, blend_hex

GAME_HEIGHT = 330
JUMP_HEIGHT = 100
JUMP_MS = 300
SHOT_MS = 500


class GameCanvas(QWidget):
    """Draws goal, obstacles, targets, enemy and character from the session's snapshot.

    Listens to session events: every event triggers a repaint, ``Jumped`` and
    ``Shot`` additionally show a short-lived effect that never feeds back into
    the world.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._session: Optional[LevelSession] = None
        self._unsubscribe = None
        self._jump_offset = 0
        self._shot_from: Optional[tuple[float, float]] = None
        self.setMinimumHeight(GAME_HEIGHT)

    def set_session(self, session: Optional[LevelSession]) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._session = session
        self._jump_offset = 0
        self._shot_from = None
        if session is not None:
            self._unsubscribe = session.subscribe(self._on_event)
        self.update()

    def _on_event(self, event: GameEvent) -> None:
        if isinstance(event, Jumped):
            self._jump_offset = JUMP_HEIGHT
            QTimer.singleShot(JUMP_MS, self._land)
        elif isinstance(event, Shot):
            self._shot_from = (event.x, event.y)
            QTimer.singleShot(SHOT_MS, self._clear_shot)
        self.update()

    def _land(self) -> None:
        self._jump_offset = 0
        self.update()

    def _clear_shot(self) -> None:
        self._shot_from = None
        self.update()

    def paintEvent(self, event) -> None:
        """Paint the current world snapshot."""
        super().paintEvent(event)
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(self.rect(), QColor(GameColors.GAME_BG))
        if self._session is None:
            return

        world = self._session.world
        layout = self._session.descriptor.layout
        snapshot = world.snapshot()
        sx = self.width() / max(1.0, layout.playable_width)
        sy = self.height() / GAME_HEIGHT

        def rect(x: float, y: float, w: float, h: float) -> QRectF:
            return QRectF(x * sx, y * sy, w * sx, h * sy)

        def fill(entity: Entity, color: str) -> None:
            painter.fillRect(rect(entity.x, entity.y, entity.width, entity.height), QColor(color))

        goal = QColor(GameColors.GOAL)
        goal.setAlphaF(0.6)
        painter.fillRect(rect(world.goal.x, world.goal.y, world.goal.width, world.goal.height), goal)

        for obstacle in world.obstacles:
            fill(obstacle, GameColors.OBSTACLE)
        for target in world.targets:
            fill(target, GameColors.TARGET_HIT if target.hit else GameColors.TARGET)
        if world.enemy is not None:
            color = GameColors.ENEMY if snapshot.enemy_near else blend_hex(GameColors.ENEMY, GameColors.GAME_BG, 0.4)
            fill(world.enemy, color)

        character = rect(
            snapshot.x,
            snapshot.y - self._jump_offset,
            layout.character_width,
            layout.character_height,
        )
        painter.setBrush(QColor(GameColors.CHARACTER))
        painter.setPen(QPen(QColor(GameColors.BG_MAIN), 2))
        painter.drawRoundedRect(character, 8, 8)

        if self._shot_from is not None:
            x, y = self._shot_from
            start_x = x + layout.character_width
            mid_y = y + layout.character_height / 2
            painter.setPen(QPen(QColor(GameColors.PROJECTILE), 3))
            painter.drawLine(int(start_x * sx), int(mid_y * sy), int((start_x + 300) * sx), int(mid_y * sy))

        painter.setPen(QColor(GameColors.TEXT_PRIMARY))
        status = f"Speed: {snapshot.speed}"
        if world.targets:
            status += f" | Targets Hit: {snapshot.hit_count}/{len(world.targets)}"
        if world.enemy is not None:
            status += f" | Enemy Near: {str(snapshot.enemy_near).lower()}"
        painter.drawText(self.rect().adjusted(12, 8, -12, -8), Qt.AlignLeft | Qt.AlignTop, status)
