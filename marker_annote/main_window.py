# marker_annote/main_window.py
from __future__ import annotations

import logging
from typing import Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QSplitter,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from .dialogs.marker_label import prompt_marker_label
from .domain import MarkerType, Video
from .marker_types import MarkerTypeRegistry, QSettingsPreferenceStore
from .persistence import BackgroundDispatcher, RemoteVideoStore
from .playback import PlaybackSync, PlayerApiReadiness, player_anchor
from .session import AnnotationSession
from .store import AnnotationStore
from .timeutils import format_time
from .widgets.marker_groups_tree import MarkerGroupsTree
from .widgets.marker_timeline import MarkerTimeline
from .widgets.marker_types_panel import MarkerTypesPanel
from .widgets.player_view import PlayerView

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, remote: Optional[RemoteVideoStore] = None):
        super().__init__()
        self.setWindowTitle("Marker-Annote (Video Marker Annotation)")
        self.resize(1400, 900)

        self.registry = MarkerTypeRegistry(QSettingsPreferenceStore(), parent=self)
        self.dispatcher = BackgroundDispatcher()
        self.store = AnnotationStore(remote or RemoteVideoStore(), self.registry, self.dispatcher, parent=self)
        self.readiness = PlayerApiReadiness(self)
        self.playback = PlaybackSync(self.store, self._create_player_view, self.readiness, parent=self)
        self.session = AnnotationSession(self.store, self.registry, self.playback, self._prompt_label, parent=self)

        self._build_ui()

        self.store.videos_changed.connect(self._on_videos_changed)
        self.store.markers_changed.connect(self._on_markers_changed)
        self.playback.position_changed.connect(self._on_position_changed)
        self.playback.playing_changed.connect(self._on_playing_changed)
        self.session.current_video_changed.connect(self._on_current_video_changed)

    def start(self) -> None:
        self.registry.load()
        self.store.load()
        self.playback.start()

    # ---------------- UI ----------------

    def _build_ui(self):
        self.pages = QStackedWidget()
        self.setCentralWidget(self.pages)

        # ===== List page =====
        list_page = QWidget()
        list_lay = QVBoxLayout(list_page)
        list_lay.setContentsMargins(8, 8, 8, 8)
        list_lay.addWidget(QLabel("Videos"))
        self.video_list = QListWidget()
        self.video_list.setCursor(Qt.PointingHandCursor)
        self.video_list.itemActivated.connect(self._on_video_activated)
        self.video_list.itemDoubleClicked.connect(self._on_video_activated)
        list_lay.addWidget(self.video_list, stretch=1)
        self.status_label = QLabel("Loading...")
        list_lay.addWidget(self.status_label)
        self.pages.addWidget(list_page)

        # ===== Detail page =====
        detail = QWidget()
        detail_lay = QVBoxLayout(detail)
        detail_lay.setContentsMargins(8, 8, 8, 8)
        detail_lay.setSpacing(6)

        top = QHBoxLayout()
        self.btn_back = QPushButton("Back")
        self.btn_back.clicked.connect(self.session.go_back_to_list)
        self.title_label = QLabel("")
        self.title_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        top.addWidget(self.btn_back)
        top.addWidget(self.title_label, stretch=1)
        detail_lay.addLayout(top)

        split = QSplitter(Qt.Horizontal)
        detail_lay.addWidget(split, stretch=1)

        left = QWidget()
        left_lay = QVBoxLayout(left)
        left_lay.setContentsMargins(0, 0, 0, 0)

        # Players live here for the whole session; one page per video.
        self.player_stack = QStackedWidget()
        left_lay.addWidget(self.player_stack, stretch=8)

        play_bar = QHBoxLayout()
        self.btn_play = QPushButton("Play")
        self.btn_play.clicked.connect(self._toggle_play)
        self.time_label = QLabel("0:00 / 0:00")
        play_bar.addWidget(self.btn_play)
        play_bar.addWidget(self.time_label)
        play_bar.addStretch()
        left_lay.addLayout(play_bar)

        self.timeline = MarkerTimeline(self.session.selector, self.registry)
        self.timeline.marker_clicked.connect(self.session.jump_to_marker)
        left_lay.addWidget(self.timeline)

        tempo_box = QGroupBox("Tap Tempo")
        tempo_lay = QHBoxLayout(tempo_box)
        self.btn_tap = QPushButton("Tap")
        self.btn_tap.clicked.connect(self._on_tap)
        self.bpm_label = QLabel("BPM: --")
        self.btn_save_bpm = QPushButton("Save BPM")
        self.btn_save_bpm.clicked.connect(self._on_save_bpm)
        self.btn_reset_bpm = QPushButton("Reset")
        self.btn_reset_bpm.clicked.connect(self._on_reset_bpm)
        for w in (self.btn_tap, self.bpm_label, self.btn_save_bpm, self.btn_reset_bpm):
            tempo_lay.addWidget(w)
        tempo_lay.addStretch()
        left_lay.addWidget(tempo_box)

        right = QWidget()
        right_lay = QVBoxLayout(right)
        right_lay.setContentsMargins(0, 0, 0, 0)
        self.types_panel = MarkerTypesPanel(self.registry)
        right_lay.addWidget(self.types_panel, stretch=2)

        self.groups = MarkerGroupsTree(self.store, self.registry)
        self.groups.marker_activated.connect(self.session.jump_to_marker)
        right_lay.addWidget(self.groups, stretch=3)

        split.addWidget(left)
        split.addWidget(right)
        split.setStretchFactor(0, 3)
        split.setStretchFactor(1, 1)

        self.pages.addWidget(detail)

        for b in (self.btn_back, self.btn_play, self.btn_tap, self.btn_save_bpm, self.btn_reset_bpm):
            b.setCursor(Qt.PointingHandCursor)

    # ---------------- Collaborators ----------------

    def _create_player_view(self, anchor: str, source_ref: str) -> PlayerView:
        view = PlayerView(anchor, source_ref)
        self.player_stack.addWidget(view)
        return view

    def _prompt_label(self, video: Video, start: int, end: int, info: MarkerType, default: str) -> Optional[str]:
        return prompt_marker_label(self, video, start, end, info, default)

    # ---------------- Handlers ----------------

    def _on_video_activated(self, item: QListWidgetItem):
        self.session.select_video(int(item.data(Qt.UserRole)))

    def _on_current_video_changed(self, video_id):
        video = self.store.get_video(video_id)
        if video is None:
            self.pages.setCurrentIndex(0)
            self.timeline.set_video(None)
            self.groups.set_video(None)
            self._refresh_list()
            return

        view = self.player_stack.findChild(QWidget, player_anchor(video.id))
        if view is not None:
            self.player_stack.setCurrentWidget(view)
        self.title_label.setText(video.name)
        self.timeline.set_video(video)
        self._refresh_time(video)
        self._refresh_bpm()
        self._refresh_groups()
        self.pages.setCurrentIndex(1)
        self.timeline.setFocus()

    def _toggle_play(self):
        video = self.session.current_video()
        if video is not None:
            self.playback.toggle_play(video.id)

    def _on_tap(self):
        self.session.tap()
        self._refresh_bpm()

    def _on_save_bpm(self):
        self.session.save_bpm()
        self._refresh_bpm()

    def _on_reset_bpm(self):
        self.session.tempo.reset()
        self._refresh_bpm()

    def _on_videos_changed(self):
        self._refresh_list()
        video = self.session.current_video()
        if video is not None:
            self.title_label.setText(video.name)
            self.timeline.refresh()
            self._refresh_time(video)
            self._refresh_bpm()

    def _on_markers_changed(self, video_id: int):
        if video_id == self.session.current_video_id:
            self.timeline.refresh()
            self._refresh_groups()
        self._refresh_list()

    def _on_position_changed(self, video_id: int, _seconds: int):
        video = self.session.current_video()
        if video is not None and video.id == video_id:
            self._refresh_time(video)
            self.timeline.update()

    def _on_playing_changed(self, video_id: int, playing: bool):
        if video_id == self.session.current_video_id:
            self.btn_play.setText("Pause" if playing else "Play")

    # ---------------- Refresh ----------------

    def _refresh_list(self):
        self.video_list.clear()
        for v in self.store.videos:
            bpm = f"{v.bpm} BPM" if v.bpm else "no BPM"
            item = QListWidgetItem(f"{v.name}  [{len(v.time_labels)} markers, {bpm}]")
            item.setData(Qt.UserRole, v.id)
            self.video_list.addItem(item)
        self.status_label.setText(f"{len(self.store.videos)} videos")

    def _refresh_time(self, video: Video):
        self.time_label.setText(f"{format_time(video.current_time)} / {format_time(video.duration)}")

    def _refresh_bpm(self):
        bpm = self.session.tempo.display_bpm
        video = self.session.current_video()
        saved = f" (saved: {video.bpm})" if video is not None and video.bpm else ""
        self.bpm_label.setText(f"BPM: {bpm if bpm is not None else '--'}{saved}")
        self.btn_save_bpm.setEnabled(bpm is not None)

    def _refresh_groups(self):
        self.groups.set_video(self.session.current_video())

    # ---------------- Teardown ----------------

    def closeEvent(self, event):
        self.session.dispose()
        super().closeEvent(event)
