from __future__ import annotations

import logging
import sys
from pathlib import Path

from PySide6.QtGui import QColor, QFont, QPalette
from PySide6.QtWidgets import QApplication, QMessageBox, QStyleFactory

from darsino.config import PROJECT_ROOT
from darsino.domain.enums import Theme
from darsino.infra.db import init_db
from darsino.infra.logging import setup_logging
from darsino.ui.main_window import MainWindow

logger = logging.getLogger(__name__)


def _dark_palette() -> QPalette:
    palette = QPalette()
    palette.setColor(QPalette.Window, QColor("#0F172A"))
    palette.setColor(QPalette.WindowText, QColor("#E6EDF3"))
    palette.setColor(QPalette.Base, QColor("#111827"))
    palette.setColor(QPalette.AlternateBase, QColor("#1B2230"))
    palette.setColor(QPalette.Text, QColor("#E6EDF3"))
    palette.setColor(QPalette.Button, QColor("#202A3B"))
    palette.setColor(QPalette.ButtonText, QColor("#E6EDF3"))
    palette.setColor(QPalette.ToolTipBase, QColor("#1B2230"))
    palette.setColor(QPalette.ToolTipText, QColor("#E6EDF3"))
    palette.setColor(QPalette.Highlight, QColor("#2563EB"))
    palette.setColor(QPalette.HighlightedText, QColor("#FFFFFF"))
    return palette


def apply_theme(app: QApplication, theme: Theme) -> None:
    if theme == Theme.DARK:
        app.setPalette(_dark_palette())
    elif theme == Theme.LIGHT:
        app.setPalette(app.style().standardPalette())
    else:
        app.setPalette(QPalette())


def _find_qss_path() -> Path | None:
    candidates = [
        Path(__file__).resolve().parent / "ui" / "styles.qss",
        PROJECT_ROOT / "darsino" / "ui" / "styles.qss",
        Path.cwd() / "darsino" / "ui" / "styles.qss",
    ]
    meipass = getattr(sys, "_MEIPASS", None)
    if meipass:
        candidates.append(Path(meipass) / "darsino" / "ui" / "styles.qss")

    for path in candidates:
        if path.exists():
            return path
    return None


def load_styles(app: QApplication) -> None:
    qss_path = _find_qss_path()
    if not qss_path:
        return
    app.setStyleSheet(qss_path.read_text(encoding="utf-8"))


def main() -> None:
    setup_logging()
    try:
        init_db()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Database initialisation failed")
        app = QApplication(sys.argv)
        QMessageBox.critical(None, "خطای پایگاه داده", str(exc))
        return

    app = QApplication(sys.argv)
    app.setStyle(QStyleFactory.create("Fusion"))
    app.setFont(QFont("Vazirmatn", 10))
    load_styles(app)

    window = MainWindow(on_theme_changed=lambda theme: apply_theme(app, theme))
    apply_theme(app, window.service.state.settings.theme)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
