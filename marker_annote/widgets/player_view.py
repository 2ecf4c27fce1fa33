# marker_annote/widgets/player_view.py
from __future__ import annotations

import os
from typing import Optional

from PyQt5.QtCore import QSize, QUrl, pyqtSignal
from PyQt5.QtMultimedia import QMediaContent, QMediaPlayer
from PyQt5.QtMultimediaWidgets import QVideoWidget
from PyQt5.QtWidgets import QSizePolicy, QVBoxLayout, QWidget

from ..playback import PlayerState


def media_url(source_ref: str) -> QUrl:
    if source_ref and os.path.exists(source_ref):
        return QUrl.fromLocalFile(os.path.abspath(source_ref))
    url = QUrl(source_ref or "")
    if url.scheme():
        return url
    return QUrl.fromUserInput(source_ref or "")


class PlayerView(QWidget):
    """
    One QMediaPlayer + QVideoWidget satisfying the PlayerOps protocol.

    objectName is the player anchor ("player-preview-<videoId>").
    Emits ready() once media is loaded and state_changed(PlayerState).
    """
    ready = pyqtSignal()
    state_changed = pyqtSignal(int)

    def __init__(self, anchor: str, source_ref: str, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setObjectName(anchor)
        self._source_ref = source_ref
        self._ready_emitted = False

        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        self.video = QVideoWidget(self)
        self.video.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        lay.addWidget(self.video)

        self._player = QMediaPlayer(self, QMediaPlayer.VideoSurface)
        self._player.setVideoOutput(self.video)
        self._player.stateChanged.connect(self._on_state_changed)
        self._player.mediaStatusChanged.connect(self._on_media_status)
        self._player.setMedia(QMediaContent(media_url(source_ref)))

    def sizeHint(self) -> QSize:
        return QSize(480, 270)

    # ---------------- PlayerOps ----------------

    def play(self) -> None:
        self._player.play()

    def pause(self) -> None:
        self._player.pause()

    def seek_to(self, seconds: float, allow_seek_ahead: bool) -> None:
        # Local/streamed media seeks immediately; allow_seek_ahead has no effect here.
        self._player.setPosition(int(max(0.0, float(seconds)) * 1000))

    def current_time(self) -> float:
        return self._player.position() / 1000.0

    def duration(self) -> float:
        return (self._player.duration() or 0) / 1000.0

    def player_state(self) -> int:
        st = self._player.state()
        if st == QMediaPlayer.PlayingState:
            return int(PlayerState.PLAYING)
        if st == QMediaPlayer.PausedState:
            return int(PlayerState.PAUSED)
        if self._player.mediaStatus() == QMediaPlayer.EndOfMedia:
            return int(PlayerState.ENDED)
        return int(PlayerState.UNSTARTED if not self._ready_emitted else PlayerState.CUED)

    def title(self) -> str:
        title = self._player.metaData("Title")
        if title:
            return str(title)
        return os.path.splitext(os.path.basename(self._source_ref))[0] or self._source_ref

    def release(self) -> None:
        self._player.stop()
        self._player.setMedia(QMediaContent())
        self.deleteLater()

    # ---------------- Qt signal mapping ----------------

    def _on_state_changed(self, state) -> None:
        if state == QMediaPlayer.PlayingState:
            self.state_changed.emit(int(PlayerState.PLAYING))
        elif state == QMediaPlayer.PausedState:
            self.state_changed.emit(int(PlayerState.PAUSED))
        elif self._player.mediaStatus() == QMediaPlayer.EndOfMedia:
            self.state_changed.emit(int(PlayerState.ENDED))
        else:
            self.state_changed.emit(int(PlayerState.PAUSED))

    def _on_media_status(self, status) -> None:
        if status in (QMediaPlayer.LoadedMedia, QMediaPlayer.BufferedMedia) and not self._ready_emitted:
            self._ready_emitted = True
            self.ready.emit()
        elif status in (QMediaPlayer.BufferingMedia, QMediaPlayer.StalledMedia):
            if self._player.state() == QMediaPlayer.PlayingState:
                self.state_changed.emit(int(PlayerState.BUFFERING))
        elif status == QMediaPlayer.EndOfMedia:
            self.state_changed.emit(int(PlayerState.ENDED))
