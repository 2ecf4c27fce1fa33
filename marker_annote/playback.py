# marker_annote/playback.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Protocol, Union, runtime_checkable

from PyQt5.QtCore import QObject, QTimer, pyqtSignal

from .config import PLAYER_ANCHOR_PREFIX, POLL_INTERVAL_MS
from .domain import Video
from .store import AnnotationStore

logger = logging.getLogger(__name__)


class PlayerState(IntEnum):
    UNSTARTED = -1
    ENDED = 0
    PLAYING = 1
    PAUSED = 2
    BUFFERING = 3
    CUED = 5


def player_anchor(video_id: int) -> str:
    return f"{PLAYER_ANCHOR_PREFIX}{video_id}"


@runtime_checkable
class PlayerOps(Protocol):
    """
    Operations of one ready player instance.

    Implementations are QObjects that also emit:
      - ready()
      - state_changed(int)   (a PlayerState value)
    """

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek_to(self, seconds: float, allow_seek_ahead: bool) -> None: ...

    def current_time(self) -> float: ...

    def duration(self) -> float: ...

    def player_state(self) -> int: ...

    def title(self) -> str: ...

    def release(self) -> None: ...


# -----------------------------
# Player slots: NotReady | Ready(player)
# -----------------------------

@dataclass(frozen=True)
class NotReady:
    player: object


@dataclass(frozen=True)
class Ready:
    player: PlayerOps


PlayerSlot = Union[NotReady, Ready]

# (anchor name, source ref) -> player object with ready/state_changed signals
PlayerFactory = Callable[[str, str], object]


class PlayerApiReadiness(QObject):
    """Single-fire "player API available" event."""
    fired = pyqtSignal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def fire(self) -> None:
        if self._ready:
            return
        self._ready = True
        self.fired.emit()

    def when_ready(self, callback: Callable[[], None]) -> None:
        if self._ready:
            callback()
        else:
            self.fired.connect(callback)


class PlaybackSync(QObject):
    """
    Bridges the annotation layer to the players.

    Owns two tables scoped to this object, both released by dispose():
      - video id -> PlayerSlot
      - video id -> position poll QTimer (exists only while playing)

    At most one video plays at a time.
    """
    position_changed = pyqtSignal(int, int)  # (video_id, seconds)
    playing_changed = pyqtSignal(int, bool)  # (video_id, is_playing)

    def __init__(
        self,
        store: AnnotationStore,
        factory: PlayerFactory,
        readiness: Optional[PlayerApiReadiness] = None,
        poll_interval_ms: int = POLL_INTERVAL_MS,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._store = store
        self._factory = factory
        self._readiness = readiness or PlayerApiReadiness(self)
        self._poll_interval_ms = int(poll_interval_ms)

        self._players: Dict[int, PlayerSlot] = {}
        self._timers: Dict[int, QTimer] = {}

    # ---------------- Player lifecycle ----------------

    def start(self) -> None:
        """Create players for all videos once the player API is available."""
        self._readiness.when_ready(self.create_all)

    def create_all(self) -> None:
        for video in self._store.videos:
            self.create_player(video)

    def create_player(self, video: Video) -> Optional[PlayerSlot]:
        if video.id in self._players:
            return self._players[video.id]
        if not self._readiness.is_ready:
            logger.debug("Player API not ready; deferring player for video %s", video.id)
            return None

        anchor = player_anchor(video.id)
        logger.info("Creating player for video %s (%s) at %s", video.id, video.source_ref, anchor)
        player = self._factory(anchor, video.source_ref)
        if player is None:
            logger.warning("No player anchor %s; skipping video %s", anchor, video.id)
            return None

        vid = video.id
        player.ready.connect(lambda _vid=vid, _p=player: self._on_player_ready(_vid, _p))
        player.state_changed.connect(lambda state, _vid=vid: self._on_state_changed(_vid, state))
        slot = NotReady(player)
        self._players[vid] = slot
        return slot

    def slot(self, video_id: int) -> Optional[PlayerSlot]:
        return self._players.get(video_id)

    def ready_player(self, video_id: int) -> Optional[PlayerOps]:
        slot = self._players.get(video_id)
        if isinstance(slot, Ready):
            return slot.player
        return None

    def dispose(self) -> None:
        for vid in list(self._timers):
            self._stop_timer(vid)
        for vid, slot in list(self._players.items()):
            try:
                slot.player.release()
            except Exception as e:
                logger.error("Releasing player for video %s failed: %s", vid, e)
        self._players.clear()
        logger.info("Playback session disposed")

    # ---------------- Player events ----------------

    def _on_player_ready(self, video_id: int, player: PlayerOps) -> None:
        if video_id not in self._players:
            return
        self._players[video_id] = Ready(player)
        duration = int(player.duration() or 0)
        title = player.title()
        logger.info("Player ready for video %s: %r (%ss)", video_id, title, duration)
        self._store.apply_player_metadata(video_id, duration, title)

    def _on_state_changed(self, video_id: int, state: int) -> None:
        video = self._store.get_video(video_id)
        if video is None:
            return

        if state == PlayerState.PLAYING:
            video.is_playing = True
            self._start_timer(video_id)
            self.playing_changed.emit(video_id, True)
        elif state in (PlayerState.PAUSED, PlayerState.ENDED, PlayerState.BUFFERING):
            video.is_playing = False
            self._stop_timer(video_id)
            if state == PlayerState.ENDED:
                video.current_time = 0
                self.position_changed.emit(video_id, 0)
            self.playing_changed.emit(video_id, False)

    # ---------------- Position polling ----------------

    def is_polling(self, video_id: int) -> bool:
        return video_id in self._timers

    def _start_timer(self, video_id: int) -> None:
        if video_id in self._timers:
            return
        timer = QTimer(self)
        timer.setInterval(self._poll_interval_ms)
        timer.timeout.connect(lambda _vid=video_id: self.poll(_vid))
        timer.start()
        self._timers[video_id] = timer

    def _stop_timer(self, video_id: int) -> None:
        timer = self._timers.pop(video_id, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()

    def poll(self, video_id: int) -> None:
        player = self.ready_player(video_id)
        video = self._store.get_video(video_id)
        if player is None or video is None:
            return
        video.current_time = int(player.current_time() or 0)
        self.position_changed.emit(video_id, video.current_time)

    # ---------------- Control ----------------

    def pause(self, video_id: int) -> None:
        player = self.ready_player(video_id)
        if player is None:
            logger.debug("pause: player for video %s not ready", video_id)
            return
        player.pause()

    def pause_others(self, video_id: Optional[int]) -> None:
        for v in self._store.videos:
            if v.id != video_id and v.is_playing:
                self.pause(v.id)

    def toggle_play(self, video_id: int) -> None:
        player = self.ready_player(video_id)
        if player is None:
            logger.warning("toggle_play: player for video %s is not ready", video_id)
            return

        if player.player_state() == PlayerState.PLAYING:
            player.pause()
        else:
            self.pause_others(video_id)
            player.play()

    def seek(
        self,
        video_id: int,
        seconds: int,
        resume_playback: bool = True,
        allow_seek_ahead: bool = True,
    ) -> bool:
        """
        Seek a ready player. With resume_playback, start playing unless already
        playing (jump-to-marker); drag previews pass resume_playback=False.
        """
        player = self.ready_player(video_id)
        video = self._store.get_video(video_id)
        if player is None or video is None:
            logger.warning("seek: player for video %s is not ready", video_id)
            return False

        player.seek_to(seconds, allow_seek_ahead)
        video.current_time = int(seconds)
        self.position_changed.emit(video_id, video.current_time)

        if resume_playback and player.player_state() != PlayerState.PLAYING:
            self.toggle_play(video_id)
        return True

    def playing_video_ids(self) -> List[int]:
        return [v.id for v in self._store.videos if v.is_playing]
