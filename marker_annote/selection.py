# marker_annote/selection.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PyQt5.QtCore import QObject, QRectF, pyqtSignal

from .domain import Marker, MarkerType, Video
from .marker_types import MarkerTypeRegistry
from .playback import PlaybackSync
from .store import AnnotationStore
from .timeutils import PRIMARY_BUTTON, PointerEvent, format_time, resolve_time

logger = logging.getLogger(__name__)

# (video, start, end, marker type, default label) -> text, or None when cancelled
LabelPrompt = Callable[[Video, int, int, MarkerType, str], Optional[str]]


@dataclass
class RangeSelection:
    is_selecting: bool = False
    selection_start: int = 0
    selection_end: int = 0
    selected_duration: int = 0


@dataclass(frozen=True)
class SelectionOverlay:
    """Translucent band drawn over the timeline while a range is selected."""
    start_fraction: float
    end_fraction: float
    color_hex: str
    alpha: int = 64


def default_label(info: MarkerType, start: int) -> str:
    return f"{info.display_name} at {format_time(start)}"


class RangeSelector(QObject):
    """
    Idle/Selecting state machine for drag and click gestures on a timeline.

    A finished gesture either seeks the player (no active marker type) or
    opens the label-creation flow for the selected interval. A point gesture
    (duration < 1 s) selects [t, t + 1).
    """
    selection_changed = pyqtSignal()

    def __init__(
        self,
        store: AnnotationStore,
        registry: MarkerTypeRegistry,
        playback: PlaybackSync,
        current_video: Callable[[], Optional[Video]],
        prompt: Optional[LabelPrompt] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._store = store
        self._registry = registry
        self._playback = playback
        self._current_video = current_video
        self._prompt: LabelPrompt = prompt or (lambda *_args: None)
        self.selection = RangeSelection()

    def set_prompt(self, prompt: LabelPrompt) -> None:
        self._prompt = prompt

    @property
    def is_selecting(self) -> bool:
        return self.selection.is_selecting

    # ---------------- Gesture handlers ----------------

    def start(self, event: PointerEvent, bounds: QRectF) -> None:
        if event.on_marker:
            return
        if event.button is not None and event.button != PRIMARY_BUTTON:
            return
        video = self._current_video()
        if video is None:
            return

        t = resolve_time(event, bounds, video.duration)
        sel = self.selection
        sel.is_selecting = True
        sel.selection_start = t
        sel.selection_end = t
        sel.selected_duration = 0

        if video.is_playing:
            self._playback.pause(video.id)
        self.selection_changed.emit()

    def move(self, event: PointerEvent, bounds: QRectF) -> None:
        sel = self.selection
        if not sel.is_selecting:
            return
        video = self._current_video()
        if video is None:
            return
        # Stale move after a mouse-up that happened outside the timeline
        if event.buttons is not None and event.buttons == 0 and not event.is_touch:
            return

        t = resolve_time(event, bounds, video.duration)
        sel.selection_end = t
        sel.selected_duration = abs(sel.selection_end - sel.selection_start)

        video.current_time = t
        self._playback.seek(video.id, t, resume_playback=False, allow_seek_ahead=False)
        self.selection_changed.emit()

    def end(self) -> None:
        sel = self.selection
        if not sel.is_selecting:
            return
        video = self._current_video()
        if video is None:
            self.cancel()
            return

        lo = min(sel.selection_start, sel.selection_end)
        hi = max(sel.selection_start, sel.selection_end)
        sel.selection_start = lo
        sel.selection_end = hi

        active = self._registry.active
        if sel.selected_duration < 1:
            if active:
                self._create_marker_flow(video, lo, lo + 1, active)
            else:
                self._playback.seek(video.id, lo)
                self.cancel()
        else:
            if active:
                self._create_marker_flow(video, lo, hi, active)
            else:
                self._playback.seek(video.id, lo)
                self.cancel()

        sel.is_selecting = False
        self.selection_changed.emit()

    def click(self, event: PointerEvent, bounds: QRectF) -> None:
        """A click without a drag: point gesture at the clicked time."""
        sel = self.selection
        if sel.is_selecting or sel.selected_duration >= 1:
            return
        video = self._current_video()
        if video is None:
            return

        t = resolve_time(event, bounds, video.duration)
        active = self._registry.active
        if active:
            self._create_marker_flow(video, t, t + 1, active)
        else:
            self._playback.seek(video.id, t)

    def cancel(self) -> None:
        """Drop the selection; the active marker type is kept so the user can retry."""
        self.selection.is_selecting = False
        self.selection.selection_start = 0
        self.selection.selection_end = 0
        self.selection.selected_duration = 0
        self.selection_changed.emit()

    # ---------------- Label flow ----------------

    def _create_marker_flow(self, video: Video, start: int, end: int, type_key: str) -> Optional[Marker]:
        marker: Optional[Marker] = None
        try:
            self._registry.resolve(type_key)
            info = self._registry.get(type_key) or MarkerType(
                key=type_key, hex=self._registry.color_for(type_key), display_name=type_key
            )
            text = self._prompt(video, start, end, info, default_label(info, start))

            if text is not None and text.strip():
                marker = self._store.add_marker(video.id, start, end, type_key, text.strip())
            elif text is not None:
                logger.warning("Marker label is empty; marker not added")
            else:
                logger.info("Marker creation cancelled")
        finally:
            self.cancel()
            self._registry.clear_active()
        return marker

    # ---------------- Presentation ----------------

    def overlay(self) -> Optional[SelectionOverlay]:
        video = self._current_video()
        if video is None or not video.duration:
            return None
        sel = self.selection
        if not sel.is_selecting and sel.selected_duration == 0:
            return None

        lo = min(sel.selection_start, sel.selection_end)
        hi = max(sel.selection_start, sel.selection_end)
        d = float(video.duration)
        return SelectionOverlay(
            start_fraction=lo / d,
            end_fraction=min(hi / d, 1.0),
            color_hex=self._registry.color_for(self._registry.active),
        )
