"""Stand Picture Editor — CharacterPictureManager PictureList editor.

Launch with: python main.py
"""

import logging
import logging.handlers
import os
import sys

from PyQt6.QtWidgets import QApplication

from picture_editor.settings import SETTINGS_FILE, EditorSettings
from picture_editor.widgets.main_window import MainWindow

APP_NAME = "Stand Picture Editor"
LOG_FILE = os.path.join(os.path.dirname(SETTINGS_FILE), "stand_picture_editor.log")


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger()  # root
    logger.setLevel(level)

    for h in list(logger.handlers):
        logger.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    try:
        fh = logging.handlers.RotatingFileHandler(
            LOG_FILE, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
        )
    except OSError:
        fh = None   # read-only install dir: console only
    if fh is not None:
        fh.setFormatter(fmt)
        fh.setLevel(level)
        logger.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    ch.setLevel(level)
    logger.addHandler(ch)

    logger.info("%s logging initialised • %s", APP_NAME, LOG_FILE if fh else "console")
    return logger


def main():
    setup_logging()
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setStyle("Fusion")

    window = MainWindow(EditorSettings.load())
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
