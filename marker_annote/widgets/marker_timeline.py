# marker_annote/widgets/marker_timeline.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from PyQt5.QtCore import QEvent, QPoint, QRect, QRectF, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QFontMetrics, QPainter, QPen
from PyQt5.QtWidgets import QWidget

from ..domain import Marker, Video
from ..marker_types import MarkerTypeRegistry
from ..selection import RangeSelector
from ..timeutils import Block, compute_lanes_for_markers, pointer_event_from_qt


@dataclass
class _HitBlock:
    idx: int
    rect: QRect


class MarkerTimeline(QWidget):
    """
    Timeline strip for one video: stacked marker blocks, playhead and the
    live range selection.

    Press/move/release on empty timeline space drive the RangeSelector;
    clicking a marker block emits marker_clicked instead. Escape cancels a
    selection in progress.
    """
    marker_clicked = pyqtSignal(object)  # Marker

    def __init__(self, selector: RangeSelector, registry: MarkerTypeRegistry, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._selector = selector
        self._registry = registry

        self._video: Optional[Video] = None
        self._lanes: List[List[Block]] = []
        self._touch_marker: Optional[Marker] = None

        self._pad_x = 10
        self._pad_y = 8
        self._lane_h = 22
        self._lane_gap = 4
        self._block_h = 18

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setAttribute(Qt.WA_AcceptTouchEvents, True)

        self._selector.selection_changed.connect(self.update)
        self._registry.types_changed.connect(self.update)

    # ---------------- Public API ----------------

    def set_video(self, video: Optional[Video]) -> None:
        self._video = video
        self.refresh()

    def refresh(self) -> None:
        markers = self._video.time_labels if self._video is not None else []
        self._lanes = compute_lanes_for_markers(markers)
        lane_count = max(1, len(self._lanes))
        self.setMinimumHeight(self._pad_y * 2 + lane_count * self._lane_h + (lane_count - 1) * self._lane_gap)
        self.update()

    def content_bounds(self) -> QRectF:
        return QRectF(self._pad_x, self._pad_y, max(1, self.width() - 2 * self._pad_x), self.height() - 2 * self._pad_y)

    # ---------------- Geometry ----------------

    def _duration(self) -> int:
        return int(self._video.duration) if self._video is not None else 0

    def _sec_to_x(self, seconds: float) -> int:
        d = self._duration()
        if d <= 0:
            return self._pad_x
        bounds = self.content_bounds()
        s = max(0.0, min(float(seconds), float(d)))
        return self._pad_x + int(round(s / d * bounds.width()))

    def _lane_top(self, lane_idx: int) -> int:
        return self._pad_y + lane_idx * (self._lane_h + self._lane_gap)

    def _block_rects(self) -> List[_HitBlock]:
        if self._video is None or self._duration() <= 0:
            return []
        n = len(self._video.time_labels)
        out: List[_HitBlock] = []
        for lane_idx, lane in enumerate(self._lanes):
            y_top = self._lane_top(lane_idx)
            for b in lane:
                if not (0 <= b.idx < n):
                    continue
                x1 = self._sec_to_x(b.start)
                x2 = max(self._sec_to_x(b.end), x1 + 2)
                rect = QRect(x1, y_top + (self._lane_h - self._block_h) // 2, x2 - x1, self._block_h)
                out.append(_HitBlock(idx=b.idx, rect=rect))
        return out

    # ---------------- Painting ----------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(self.rect(), QColor("#141414"))

        content = self.rect().adjusted(self._pad_x, self._pad_y, -self._pad_x, -self._pad_y)
        painter.setPen(QPen(QColor("#2b2b2b"), 1))
        painter.drawRect(content)

        fm = QFontMetrics(self.font())
        markers = self._video.time_labels if self._video is not None else []

        for hb in self._block_rects():
            marker = markers[hb.idx]
            rect = hb.rect

            c = QColor(self._registry.color_for(marker.type))
            c.setAlpha(180)
            painter.fillRect(rect, c)
            painter.setPen(QPen(QColor("#000000"), 1))
            painter.drawRect(rect)

            if fm.horizontalAdvance(marker.label) + 6 < rect.width():
                painter.setPen(QPen(QColor("#0b0b0b"), 1))
                painter.drawText(rect.adjusted(3, 0, -3, 0), Qt.AlignVCenter | Qt.AlignLeft, marker.label)

        overlay = self._selector.overlay()
        if overlay is not None:
            bounds = self.content_bounds()
            x1 = int(bounds.left() + overlay.start_fraction * bounds.width())
            x2 = int(bounds.left() + overlay.end_fraction * bounds.width())
            c = QColor(overlay.color_hex)
            c.setAlpha(overlay.alpha)
            painter.fillRect(QRect(x1, content.top(), max(2, x2 - x1), content.height()), c)

        if self._video is not None and self._duration() > 0:
            x = self._sec_to_x(self._video.current_time)
            painter.setPen(QPen(QColor("#ff2d2d"), 2))
            painter.drawLine(x, self._pad_y, x, self.height() - self._pad_y)

        painter.end()

    # ---------------- Interaction ----------------

    def _hit_test_marker(self, pos: QPoint) -> Optional[Marker]:
        if self._video is None:
            return None
        for hb in self._block_rects():
            if hb.rect.contains(pos) and 0 <= hb.idx < len(self._video.time_labels):
                return self._video.time_labels[hb.idx]
        return None

    def mousePressEvent(self, event):
        on_marker = self._hit_test_marker(event.pos()) is not None
        self._selector.start(pointer_event_from_qt(event, on_marker=on_marker), self.content_bounds())
        event.accept()

    def mouseMoveEvent(self, event):
        if self._selector.is_selecting:
            self._selector.move(pointer_event_from_qt(event), self.content_bounds())
            event.accept()
            return
        self.setCursor(Qt.PointingHandCursor if self._hit_test_marker(event.pos()) else Qt.ArrowCursor)
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.LeftButton:
            return super().mouseReleaseEvent(event)
        if self._selector.is_selecting:
            self._selector.end()
        else:
            marker = self._hit_test_marker(event.pos())
            if marker is not None:
                self.marker_clicked.emit(marker)
            else:
                self._selector.click(pointer_event_from_qt(event), self.content_bounds())
        event.accept()

    def _touch_marker_at(self, event) -> Optional[Marker]:
        points = event.touchPoints()
        if not points:
            return None
        return self._hit_test_marker(points[0].pos().toPoint())

    def event(self, event):
        et = event.type()
        if et == QEvent.TouchBegin:
            self._touch_marker = self._touch_marker_at(event)
            on_marker = self._touch_marker is not None
            self._selector.start(pointer_event_from_qt(event, on_marker=on_marker), self.content_bounds())
            event.accept()
            return True
        if et == QEvent.TouchUpdate:
            self._selector.move(pointer_event_from_qt(event), self.content_bounds())
            event.accept()
            return True
        if et == QEvent.TouchEnd:
            if self._selector.is_selecting:
                self._selector.end()
            elif self._touch_marker is not None and self._touch_marker_at(event) is self._touch_marker:
                self.marker_clicked.emit(self._touch_marker)
            self._touch_marker = None
            event.accept()
            return True
        return super().event(event)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key_Escape and self._selector.is_selecting:
            self._selector.cancel()
            event.accept()
            return
        super().keyPressEvent(event)

    def leaveEvent(self, event):
        self.unsetCursor()
        super().leaveEvent(event)
