# marker_annote/store.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from .domain import Marker, MarkerGroup, Video, normalize_type, seed_videos
from .marker_types import MarkerTypeRegistry
from .persistence import Dispatcher, RemoteVideoStore, run_inline

logger = logging.getLogger(__name__)


class AnnotationStore(QObject):
    """
    In-memory list of videos and their markers.

    Mutations update memory first and then hand the full list to the remote
    store in the background. A failed write is logged and dropped; memory is
    not rolled back.

    Emits:
      - videos_changed() after load and after video-level edits
      - markers_changed(video_id) after a marker is added
    """
    videos_changed = pyqtSignal()
    markers_changed = pyqtSignal(int)

    def __init__(
        self,
        remote: RemoteVideoStore,
        registry: MarkerTypeRegistry,
        dispatch: Optional[Dispatcher] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._remote = remote
        self._registry = registry
        self._dispatch: Dispatcher = dispatch or run_inline
        self._videos: List[Video] = []
        self.is_loading: bool = False

    # ---------------- Queries ----------------

    @property
    def videos(self) -> List[Video]:
        return self._videos

    def index_of(self, video_id: int) -> int:
        for i, v in enumerate(self._videos):
            if v.id == video_id:
                return i
        return -1

    def get_video(self, video_id: Optional[int]) -> Optional[Video]:
        if video_id is None:
            return None
        i = self.index_of(video_id)
        return self._videos[i] if i != -1 else None

    # ---------------- Load / persist ----------------

    def load(self) -> List[Video]:
        """
        Fetch the full list from the remote store. Any failure falls back to
        the built-in seed videos so the list is never empty.
        """
        self.is_loading = True
        try:
            raw = self._remote.fetch()
            self._videos = [Video.from_dict(d) for d in raw]
        except Exception as e:
            logger.error("Loading videos failed, using built-in seed data: %s", e)
            self._videos = seed_videos()
        finally:
            self.is_loading = False

        for v in self._videos:
            v.current_time = 0
            v.is_playing = False
        self.videos_changed.emit()
        return self._videos

    def persist(self, videos: Optional[List[Video]] = None) -> None:
        """Full-replace write of the durable fields. Never raises."""
        if videos is None:
            videos = self._videos
        payload = [v.to_dict() for v in videos]
        if not payload:
            logger.warning("No videos to save; skipping PUT")
            return

        def _send() -> None:
            try:
                self._remote.replace(payload)
            except Exception as e:
                logger.error("Saving %d videos failed: %s", len(payload), e)

        logger.info("Saving %d videos to the remote store", len(payload))
        self._dispatch(_send)

    # ---------------- Mutations ----------------

    def add_marker(self, video_id: int, start: int, end: int, type_name: str, label: str) -> Optional[Marker]:
        video = self.get_video(video_id)
        if video is None:
            logger.warning("add_marker: unknown video id %s", video_id)
            return None

        marker = Marker(start=int(start), end=int(end), label=label, type=normalize_type(type_name))
        video.time_labels.append(marker)
        video.sort_markers()

        self.persist()
        logger.info(
            "Added marker to video %s: %r [%s] %s~%s s", video_id, label, marker.type, marker.start, marker.end
        )
        self.markers_changed.emit(int(video_id))
        return marker

    def set_bpm(self, video_id: int, bpm: Optional[int]) -> bool:
        video = self.get_video(video_id)
        if video is None:
            logger.warning("set_bpm: unknown video id %s", video_id)
            return False
        video.bpm = bpm
        self.persist()
        self.videos_changed.emit()
        return True

    def apply_player_metadata(self, video_id: int, duration: int, title: Optional[str]) -> bool:
        """
        Capture the player's duration and, if the video was never renamed
        (name still equals the source id), adopt the player's title.
        Persists only when something changed.
        """
        video = self.get_video(video_id)
        if video is None:
            return False

        duration = int(duration or 0)
        never_renamed = video.name == video.source_ref
        if video.duration == duration and not never_renamed:
            return False

        video.duration = duration
        if never_renamed and title:
            video.name = title
        self.persist()
        self.videos_changed.emit()
        return True

    # ---------------- Grouped view ----------------

    def group_markers(self, video: Optional[Video]) -> Dict[str, MarkerGroup]:
        """
        type key -> MarkerGroup, only for types with markers, ordered by key.
        Unknown types found in stored data are registered on the fly.
        """
        if video is None:
            return {}

        groups: Dict[str, MarkerGroup] = {}
        for marker in video.time_labels:
            key = normalize_type(marker.type)
            if key not in groups:
                self._registry.resolve(key)
                info = self._registry.get(key)
                if info is None:
                    logger.debug("Video %s: marker %r at %ss has no type; not grouped", video.id, marker.label, marker.start)
                    continue
                groups[key] = MarkerGroup(
                    key=key,
                    display_name=info.display_name,
                    color_hex=info.hex,
                    icon=info.icon,
                )
            groups[key].markers.append(marker)

        ordered: Dict[str, MarkerGroup] = {}
        for key in sorted(groups):
            group = groups[key]
            group.markers.sort(key=lambda m: m.start)
            ordered[key] = group
        return ordered
