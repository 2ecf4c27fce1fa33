# marker_annote/timeutils.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from PyQt5.QtCore import QEvent, QRectF, Qt

from .domain import Marker


# -----------------------------
# Time formatting
# -----------------------------

def format_time(seconds: float) -> str:
    """Whole seconds -> "m:ss"."""
    if seconds is None:
        seconds = 0
    sec = max(0, int(math.floor(float(seconds))))
    return f"{sec // 60}:{sec % 60:02d}"


# -----------------------------
# Pointer -> timeline time
# -----------------------------

PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class PointerEvent:
    """
    Framework-neutral pointer sample.

    touches holds the horizontal client coordinates of active touch points;
    button/buttons are None for touch input (touch has no button concept).
    on_marker is True when the event originated on an existing marker glyph.
    """
    client_x: float
    touches: Tuple[float, ...] = ()
    button: Optional[int] = PRIMARY_BUTTON
    buttons: Optional[int] = 1
    on_marker: bool = False

    @property
    def is_touch(self) -> bool:
        return bool(self.touches)


def client_x_of(event: PointerEvent) -> float:
    if event.touches:
        return float(event.touches[0])
    return float(event.client_x)


def resolve_time(event: PointerEvent, bounds: QRectF, video_duration: int) -> int:
    """
    Map a pointer position over a timeline container to a playback second.

    Returns 0 while the duration is unknown (0).
    """
    if not video_duration:
        return 0
    width = float(bounds.width())
    if width <= 0:
        return 0
    fraction = (client_x_of(event) - float(bounds.left())) / width
    fraction = min(1.0, max(0.0, fraction))
    return int(math.floor(fraction * int(video_duration)))


_QT_BUTTON_INDEX = {
    Qt.LeftButton: 0,
    Qt.MiddleButton: 1,
    Qt.RightButton: 2,
}


def pointer_event_from_qt(event, on_marker: bool = False) -> PointerEvent:
    """Build a PointerEvent from a QMouseEvent or QTouchEvent."""
    if event.type() in (QEvent.TouchBegin, QEvent.TouchUpdate, QEvent.TouchEnd):
        xs = tuple(float(p.pos().x()) for p in event.touchPoints())
        x = xs[0] if xs else 0.0
        return PointerEvent(client_x=x, touches=xs, button=None, buttons=None, on_marker=on_marker)

    button = _QT_BUTTON_INDEX.get(event.button(), 3) if event.button() != Qt.NoButton else PRIMARY_BUTTON
    return PointerEvent(
        client_x=float(event.pos().x()),
        button=button,
        buttons=int(event.buttons()),
        on_marker=on_marker,
    )


# -----------------------------
# Timeline geometry (percent of duration)
# -----------------------------

def progress_percent(current_time: int, duration: int) -> float:
    if not duration:
        return 0.0
    return min(float(current_time) / float(duration) * 100.0, 100.0)


def marker_position_percent(start: int, duration: int) -> float:
    if not duration:
        return 0.0
    return float(start) / float(duration) * 100.0


def marker_width_percent(start: int, end: int, duration: int) -> float:
    if not duration:
        return 0.0
    return float(end - start) / float(duration) * 100.0


# -----------------------------
# Lane stacking for overlap rendering
# -----------------------------

@dataclass(frozen=True)
class Block:
    """A marker's interval for timeline rendering (seconds)."""
    idx: int
    start: int
    end: int


def stack_blocks_into_lanes(blocks: List[Block]) -> List[List[Block]]:
    """
    Greedy lane assignment:
      - Sort by start time then duration
      - Place each block into first lane that doesn't overlap
      - If none fits, create new lane

    Touching edges are allowed (end == next start is not an overlap).
    """
    if not blocks:
        return []

    norm = sorted(blocks, key=lambda b: (b.start, b.end - b.start))
    lanes: List[List[Block]] = []
    for b in norm:
        for lane in lanes:
            if lane[-1].end <= b.start:
                lane.append(b)
                break
        else:
            lanes.append([b])
    return lanes


def compute_lanes_for_markers(markers: List[Marker]) -> List[List[Block]]:
    return stack_blocks_into_lanes(
        [Block(idx=i, start=int(m.start), end=max(int(m.end), int(m.start))) for i, m in enumerate(markers)]
    )
