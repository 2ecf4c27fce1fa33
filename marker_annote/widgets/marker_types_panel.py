# marker_annote/widgets/marker_types_panel.py
from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..marker_types import MarkerTypeRegistry


class MarkerTypesPanel(QGroupBox):
    """
    Marker type list with color swatches.

    Clicking a type toggles it as the active type (clicking the active one
    again turns marker mode off). New types are added through the input row
    and become active immediately.
    """

    def __init__(self, registry: MarkerTypeRegistry, parent: Optional[QWidget] = None):
        super().__init__("Marker Types", parent)
        self._registry = registry

        self._build_ui()
        self._registry.types_changed.connect(self.refresh)
        self._registry.active_changed.connect(lambda _key: self.refresh())
        self.refresh()

    # ---------------- UI ----------------

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(6)

        self.list = QListWidget()
        self.list.itemClicked.connect(self._on_item_clicked)
        self.list.setCursor(Qt.PointingHandCursor)
        layout.addWidget(self.list, stretch=1)

        add_row = QHBoxLayout()
        add_row.setSpacing(4)
        self.name_input = QLineEdit()
        self.name_input.setPlaceholderText("New type")
        self.name_input.returnPressed.connect(self._on_add_type)
        self.btn_add = QPushButton("Add Type")
        self.btn_add.setCursor(Qt.PointingHandCursor)
        self.btn_add.clicked.connect(self._on_add_type)
        add_row.addWidget(self.name_input, stretch=1)
        add_row.addWidget(self.btn_add)
        layout.addLayout(add_row)

    # ---------------- Public API ----------------

    def refresh(self) -> None:
        active = self._registry.active
        self.list.blockSignals(True)
        try:
            self.list.clear()
            for info in self._registry.types():
                item = QListWidgetItem(info.display_name)
                item.setData(Qt.UserRole, info.key)
                item.setData(Qt.DecorationRole, QColor(info.hex))
                if info.key == active:
                    font = item.font()
                    font.setBold(True)
                    item.setFont(font)
                    item.setText(f"{info.display_name}  (active)")
                self.list.addItem(item)
        finally:
            self.list.blockSignals(False)

    # ---------------- Internals ----------------

    def _on_item_clicked(self, item: QListWidgetItem):
        self._registry.set_active(item.data(Qt.UserRole))

    def _on_add_type(self):
        text = self.name_input.text().strip()
        if not text:
            QMessageBox.warning(self, "Invalid", "Marker type cannot be empty.")
            return
        self._registry.create(text)
        self.name_input.clear()
