# marker_annote/dialogs/marker_label.py
from __future__ import annotations

from typing import Optional

from PyQt5.QtWidgets import QInputDialog, QLineEdit, QMessageBox, QWidget

from ..domain import MarkerType, Video
from ..timeutils import format_time


def prompt_marker_label(
    parent: Optional[QWidget],
    video: Video,
    start: int,
    end: int,
    info: MarkerType,
    default: str,
) -> Optional[str]:
    """
    Ask for a marker label. Returns None when cancelled, "" when the user
    confirmed an empty label (after telling them it was discarded).
    """
    text, ok = QInputDialog.getText(
        parent,
        "New Marker",
        f"Marker label (type: {info.display_name}, time: {format_time(start)} ~ {format_time(end)}):",
        QLineEdit.Normal,
        default,
    )
    if not ok:
        return None
    if not text.strip():
        QMessageBox.warning(parent, "Empty Label", "Marker label cannot be empty; nothing was added.")
        return ""
    return text
