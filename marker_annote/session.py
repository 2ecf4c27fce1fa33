# marker_annote/session.py
from __future__ import annotations

import logging
from typing import Optional

from PyQt5.QtCore import QObject, pyqtSignal

from .domain import Marker, Video
from .marker_types import MarkerTypeRegistry
from .playback import PlaybackSync
from .selection import LabelPrompt, RangeSelector
from .store import AnnotationStore
from .tempo import TempoEstimator

logger = logging.getLogger(__name__)


class AnnotationSession(QObject):
    """
    The single active UI session: which video is open, plus the one
    RangeSelector and the one TempoEstimator.
    """
    current_video_changed = pyqtSignal(object)  # int | None

    def __init__(
        self,
        store: AnnotationStore,
        registry: MarkerTypeRegistry,
        playback: PlaybackSync,
        prompt: Optional[LabelPrompt] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.store = store
        self.registry = registry
        self.playback = playback
        self.selected_video_id: Optional[int] = None

        self.selector = RangeSelector(store, registry, playback, self.current_video, prompt, parent=self)
        self.tempo = TempoEstimator(store)

    @property
    def current_video_id(self) -> Optional[int]:
        return self.selected_video_id

    def current_video(self) -> Optional[Video]:
        return self.store.get_video(self.selected_video_id)

    # ---------------- Navigation ----------------

    def select_video(self, video_id: int) -> None:
        self.playback.pause_others(video_id)
        self.tempo.reset()
        self.selected_video_id = video_id
        self.registry.clear_active()
        self.current_video_changed.emit(video_id)

    def go_back_to_list(self) -> None:
        video = self.current_video()
        if video is not None:
            self.playback.pause(video.id)
        self.selector.cancel()
        self.registry.clear_active()
        self.selected_video_id = None
        self.current_video_changed.emit(None)

    # ---------------- Tap tempo ----------------

    def tap(self, now_ms: Optional[float] = None) -> Optional[float]:
        return self.tempo.register_tap(now_ms)

    def save_bpm(self) -> bool:
        return self.tempo.commit(self.current_video())

    # ---------------- Markers ----------------

    def create_marker_type(self, text: str) -> Optional[str]:
        return self.registry.create(text)

    def jump_to_marker(self, marker: Marker) -> bool:
        video = self.current_video()
        if video is None:
            return False
        return self.playback.seek(video.id, marker.start)

    def dispose(self) -> None:
        self.selector.cancel()
        self.tempo.reset()
        self.playback.dispose()
