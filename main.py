# main.py
from __future__ import annotations
import sys
import logging

from PySide6.QtWidgets import QApplication, QMessageBox

from app.errors import SettingsError
from app.settings import DEFAULT_SETTINGS, load_settings
from ui.main_window import MainWindow


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("app.log", encoding="utf-8"),
        ],
    )

    sys.excepthook = _report_crash


def _report_crash(exctype, value, tb):
    logging.critical("Unhandled exception", exc_info=(exctype, value, tb))
    if QApplication.instance() is not None:
        QMessageBox.critical(None, "Typemaster crashed", f"{exctype.__name__}: {value}")
    sys.exit(1)


def main() -> int:
    setup_logging(logging.DEBUG if "--debug" in sys.argv else logging.INFO)

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Typemaster")
    app.setOrganizationName("Typemaster")

    try:
        settings = load_settings()
    except SettingsError as e:
        logging.warning("Ignoring settings.json: %s", e)
        QMessageBox.warning(None, "Settings", f"{e}\n\nUsing default settings.")
        settings = DEFAULT_SETTINGS

    win = MainWindow(settings)
    win.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
