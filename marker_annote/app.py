# marker_annote/app.py
from __future__ import annotations

import logging
import sys
from typing import Optional

from PyQt5.QtCore import QTimer
from PyQt5.QtWidgets import QApplication

from .config import API_ENDPOINT, LOG_FORMAT, LOG_LEVEL
from .main_window import MainWindow
from .persistence import RemoteVideoStore


def run_app(api_endpoint: Optional[str] = None) -> int:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    app = QApplication(sys.argv)

    win = MainWindow(remote=RemoteVideoStore(api_endpoint or API_ENDPOINT))
    win.show()
    win.start()

    # QtMultimedia is usable once the event loop runs; announce it once.
    QTimer.singleShot(0, win.readiness.fire)

    return app.exec_()
