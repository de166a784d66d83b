"""Application entry point and setup for the CodeQuest game."""

import logging
import sys

from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication

from codequest.core.config import GameConfig
from codequest.core.levels import LevelRepository
from codequest.core.progress import ProgressStore
from codequest.ui.main_window import MainWindow


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run() -> None:
    """Initialize the application, load levels, and start the main window."""
    config = GameConfig.from_env()
    configure_logging(config.log_level)
    app = QApplication(sys.argv)
    app.setApplicationName("CodeQuest")
    app.setApplicationDisplayName("CodeQuest")

    levels = LevelRepository()
    progress_store = ProgressStore(config.progress_path)

    window = MainWindow(levels=levels, progress_store=progress_store, config=config)
    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(min(1280, geometry.width()), min(860, geometry.height()))
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
