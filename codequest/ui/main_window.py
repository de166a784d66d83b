from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent, QFont
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from codequest.core.config import GameConfig
from codequest.core.levels import LevelRepository
from codequest.core.progress import ProgressStore
from codequest.core.session import LevelSession, RunResult
from codequest.ui.colors import GameColors, blend_hex
from codequest.ui.game_canvas import GameCanvas
from codequest.ui.models import LevelState
from codequest.ui.playback import EnemyClock, ScriptPlayer

logger = logging.getLogger(__name__)


def _button(text: str, color: str) -> QPushButton:
    button = QPushButton(text)
    button.setMinimumSize(120, 35)
    button.setCursor(Qt.PointingHandCursor)
    button.setStyleSheet(f"""
        QPushButton {{
            background-color: {color};
            color: white;
            font-size: 14px;
            border: none;
            border-radius: 6px;
        }}
        QPushButton:hover {{ background-color: {blend_hex(color, "#ffffff", 0.15)}; }}
        QPushButton:disabled {{ background-color: {blend_hex(color, GameColors.BG_MAIN, 0.6)}; }}
    """)
    return button


class MainWindow(QMainWindow):
    """Level screen: level list, world view, code editor and output panel.

    The window is only a collaborator of :class:`LevelSession`: it hands over
    the editor text on Run, asks for the starter code on Reset, and renders
    what the session reports back.
    """

    def __init__(self, levels: LevelRepository, progress_store: ProgressStore, config: GameConfig) -> None:
        super().__init__()
        self._levels_repo = levels
        self._progress_store = progress_store
        self._config = config
        self._session: Optional[LevelSession] = None
        self._current_key: Optional[str] = None

        self._player = ScriptPlayer(self)
        self._player.output.connect(self._append_lines)
        self._player.finished.connect(self._on_run_finished)
        self._player.cancelled.connect(self._on_run_cancelled)
        self._enemy_clock = EnemyClock(config.enemy_interval_ms, self)

        self._build_ui()
        self._refresh_levels_list()
        first = self._levels_repo.keys()[0]
        self._start_level(first)

    def _build_ui(self) -> None:
        self.setWindowTitle("CodeQuest")
        self.setMinimumSize(1200, 760)
        self.setStyleSheet(f"QMainWindow {{ background: {GameColors.BG_MAIN}; }}")

        root = QWidget()
        root_layout = QHBoxLayout(root)
        root_layout.setContentsMargins(10, 10, 10, 10)
        root_layout.setSpacing(10)

        self._levels_list = QListWidget()
        self._levels_list.setFixedWidth(220)
        self._levels_list.setStyleSheet(f"""
            QListWidget {{
                background: {GameColors.PANEL_BG};
                color: {GameColors.TEXT_SECONDARY};
                border: none;
                font-size: 14px;
            }}
            QListWidget::item {{ padding: 8px; }}
            QListWidget::item:selected {{ background: {GameColors.HELP}; color: white; }}
        """)
        self._levels_list.itemClicked.connect(self._on_level_clicked)

        sidebar = QVBoxLayout()
        self._progress_label = QLabel("")
        self._progress_label.setStyleSheet(f"color: {GameColors.TEXT_MUTED}; font-size: 13px;")
        sidebar.addWidget(self._progress_label)
        sidebar.addWidget(self._levels_list, 1)
        root_layout.addLayout(sidebar)

        content = QVBoxLayout()
        content.setSpacing(8)

        self._title_label = QLabel("")
        self._title_label.setStyleSheet(f"color: {GameColors.TEXT_PRIMARY}; font-size: 24px;")
        self._instructions_label = QLabel("")
        self._instructions_label.setWordWrap(True)
        self._instructions_label.setStyleSheet(f"color: {GameColors.TEXT_SECONDARY}; font-size: 14px;")
        content.addWidget(self._title_label)
        content.addWidget(self._instructions_label)

        self._canvas = GameCanvas()
        content.addWidget(self._canvas, 1)

        mono = QFont("Monospace")
        mono.setStyleHint(QFont.TypeWriter)

        code_label = QLabel("Your Code:")
        code_label.setStyleSheet(f"color: {GameColors.TEXT_PRIMARY};")
        self._code_edit = QPlainTextEdit()
        self._code_edit.setFont(mono)
        self._code_edit.setPlaceholderText("Type your code here...")
        self._code_edit.setMinimumHeight(120)
        self._code_edit.setStyleSheet(
            f"background: {GameColors.PANEL_BG}; color: {GameColors.TEXT_CODE}; border: none;"
        )
        content.addWidget(code_label)
        content.addWidget(self._code_edit)

        buttons = QHBoxLayout()
        buttons.addStretch(1)
        self._run_button = _button("Run Code", GameColors.RUN)
        self._run_button.clicked.connect(self._run_code)
        self._reset_button = _button("Reset Level", GameColors.RESET)
        self._reset_button.clicked.connect(self._reset_level)
        self._help_button = _button("Help", GameColors.HELP)
        self._help_button.clicked.connect(self._show_help)
        self._next_button = _button("Next Level", GameColors.RUN)
        self._next_button.clicked.connect(self._next_level)
        for button in (self._run_button, self._reset_button, self._help_button, self._next_button):
            buttons.addWidget(button)
        buttons.addStretch(1)
        content.addLayout(buttons)

        output_label = QLabel("Output:")
        output_label.setStyleSheet(f"color: {GameColors.TEXT_PRIMARY};")
        self._output = QPlainTextEdit()
        self._output.setReadOnly(True)
        self._output.setFont(mono)
        self._output.setMinimumHeight(120)
        self._output.setStyleSheet(
            f"background: {GameColors.PANEL_BG}; color: {GameColors.TEXT_OUTPUT}; border: none;"
        )
        content.addWidget(output_label)
        content.addWidget(self._output)

        root_layout.addLayout(content, 1)
        self.setCentralWidget(root)

    def _build_level_states(self) -> list[LevelState]:
        keys = self._levels_repo.keys()
        states = []
        for level in self._levels_repo.all():
            states.append(
                LevelState(
                    level=level,
                    unlocked=self._progress_store.is_unlocked(keys, level.key, self._config.unlock_all),
                    completed=self._progress_store.get_level_progress(level.key).completed,
                    is_current=level.key == self._current_key,
                )
            )
        return states

    def _refresh_levels_list(self) -> None:
        self._levels_list.clear()
        for state in self._build_level_states():
            item = QListWidgetItem(state.label)
            item.setData(Qt.UserRole, state.level.key)
            if not state.unlocked:
                item.setFlags(item.flags() & ~Qt.ItemIsEnabled)
            self._levels_list.addItem(item)
            if state.is_current:
                self._levels_list.setCurrentItem(item)
        total = len(self._levels_repo.keys())
        self._progress_label.setText(f"Completed: {self._progress_store.completed_count()}/{total}")

    def _on_level_clicked(self, item: QListWidgetItem) -> None:
        key = item.data(Qt.UserRole)
        if key and key != self._current_key:
            self._start_level(key)

    def _start_level(self, level_key: str) -> None:
        """Create a fresh session for the level and show it."""
        self._player.cancel()
        self._enemy_clock.stop()
        level = self._levels_repo.get(level_key)
        self._current_key = level_key
        self._session = LevelSession(level, pacing_ms=self._config.pacing_ms)
        self._canvas.set_session(self._session)
        self._enemy_clock.attach(self._session)

        self._title_label.setText(f"Level {level.number}: {level.title}")
        self._instructions_label.setText(level.instructions)
        self._code_edit.setPlainText(level.starter_code)
        self._output.clear()
        self._append_output(f"Welcome to Level {level.number}: {level.title}!")
        self._update_buttons()
        self._refresh_levels_list()
        logger.info("Started level %s", level_key)

    def _run_code(self) -> None:
        if self._session is None or self._player.busy:
            return
        self._player.play(self._session, self._code_edit.toPlainText())
        self._update_buttons()

    def _append_lines(self, lines: list) -> None:
        for line in lines:
            self._append_output(line)

    def _on_run_finished(self, result: RunResult) -> None:
        if self._session is not None and self._current_key is not None:
            self._progress_store.record_run(self._current_key, result.completed, self._session.runs)
        if result.completed:
            self._enemy_clock.stop()
            self._refresh_levels_list()
        self._update_buttons()

    def _on_run_cancelled(self) -> None:
        self._append_output("Run stopped.")
        self._update_buttons()

    def _reset_level(self) -> None:
        if self._session is None:
            return
        self._player.cancel()
        self._enemy_clock.stop()
        starter = self._session.reset()
        self._enemy_clock.restart()
        self._code_edit.setPlainText(starter)
        self._output.clear()
        self._append_output("Level reset. Let's try again!")
        self._update_buttons()

    def _show_help(self) -> None:
        if self._session is None:
            return
        self._append_output("\n--- HELP ---")
        self._append_output(self._session.help())

    def _next_level(self) -> None:
        if self._current_key is None:
            return
        next_key = self._levels_repo.next_key(self._current_key)
        if next_key is None:
            self._append_output("\nYou've completed all levels of CodeQuest!")
            return
        self._start_level(next_key)

    def _update_buttons(self) -> None:
        busy = self._player.busy
        completed = self._session is not None and self._session.completed
        self._run_button.setEnabled(not busy)
        self._next_button.setEnabled(completed and not busy)

    def _append_output(self, text: str) -> None:
        self._output.appendPlainText(text)
        bar = self._output.verticalScrollBar()
        bar.setValue(bar.maximum())

    def closeEvent(self, event: QCloseEvent) -> None:
        """Stop timers and persist progress when closing the app."""
        self._player.cancel()
        self._enemy_clock.stop()
        self._progress_store.save()
        super().closeEvent(event)
