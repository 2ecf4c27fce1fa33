# marker_annote/widgets/marker_groups_tree.py
from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QColor
from PyQt5.QtWidgets import QTreeWidget, QTreeWidgetItem, QWidget

from ..domain import Video
from ..marker_types import MarkerTypeRegistry
from ..store import AnnotationStore
from ..timeutils import format_time


class MarkerGroupsTree(QTreeWidget):
    """
    Markers of the current video grouped by type, one top-level item per type.

    Activating a marker row emits marker_activated(Marker).
    """
    marker_activated = pyqtSignal(object)  # Marker

    def __init__(self, store: AnnotationStore, registry: MarkerTypeRegistry, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._store = store
        self._video: Optional[Video] = None

        self.setHeaderLabels(["Marker", "Time"])
        self.itemActivated.connect(self._on_item_activated)
        self.itemDoubleClicked.connect(self._on_item_activated)
        registry.types_changed.connect(self.refresh)

    def set_video(self, video: Optional[Video]) -> None:
        self._video = video
        self.refresh()

    def refresh(self) -> None:
        # group_markers can emit types_changed and re-enter refresh
        groups = self._store.group_markers(self._video)

        self.clear()
        for group in groups.values():
            top = QTreeWidgetItem([f"{group.icon}  {group.display_name}", str(len(group.markers))])
            top.setData(0, Qt.DecorationRole, QColor(group.color_hex))
            for m in group.markers:
                child = QTreeWidgetItem([m.label, f"{format_time(m.start)} ~ {format_time(m.end)}"])
                child.setData(0, Qt.UserRole, m)
                top.addChild(child)
            self.addTopLevelItem(top)
            top.setExpanded(True)

    def _on_item_activated(self, item: QTreeWidgetItem, _column: int = 0):
        marker = item.data(0, Qt.UserRole)
        if marker is not None:
            self.marker_activated.emit(marker)
