import copy
import json
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtCore import QObject, QRectF, pyqtSignal
from PyQt5.QtWidgets import QApplication

from marker_annote.marker_types import MarkerTypeRegistry, MemoryPreferenceStore
from marker_annote.persistence import RemoteStoreError, run_inline
from marker_annote.playback import PlaybackSync, PlayerApiReadiness, PlayerState
from marker_annote.session import AnnotationSession
from marker_annote.store import AnnotationStore


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


class FakeRemote:
    def __init__(self, videos=None, fail_fetch=False, fail_replace=False):
        self.videos = videos if videos is not None else []
        self.fail_fetch = fail_fetch
        self.fail_replace = fail_replace
        self.writes = []

    def fetch(self):
        if self.fail_fetch:
            raise RemoteStoreError("connection refused")
        return copy.deepcopy(self.videos)

    def replace(self, videos):
        if self.fail_replace:
            raise RemoteStoreError("500 Internal Server Error")
        self.writes.append(json.loads(json.dumps(videos)))


class FakePlayer(QObject):
    ready = pyqtSignal()
    state_changed = pyqtSignal(int)

    def __init__(self, anchor, source_ref, duration=100, title="Player title"):
        super().__init__()
        self.anchor = anchor
        self.source_ref = source_ref
        self._duration = duration
        self._title = title
        self.state = PlayerState.UNSTARTED
        self.position = 0
        self.calls = []
        self.released = False

    def play(self):
        self.calls.append(("play",))
        self.state = PlayerState.PLAYING
        self.state_changed.emit(int(PlayerState.PLAYING))

    def pause(self):
        self.calls.append(("pause",))
        self.state = PlayerState.PAUSED
        self.state_changed.emit(int(PlayerState.PAUSED))

    def seek_to(self, seconds, allow_seek_ahead):
        self.calls.append(("seek_to", seconds, allow_seek_ahead))
        self.position = seconds

    def current_time(self):
        return self.position

    def duration(self):
        return self._duration

    def player_state(self):
        return int(self.state)

    def title(self):
        return self._title

    def release(self):
        self.released = True


class PlayerFactory:
    def __init__(self, duration=100, title="Player title"):
        self.players = {}
        self.duration = duration
        self.title = title

    def __call__(self, anchor, source_ref):
        player = FakePlayer(anchor, source_ref, duration=self.duration, title=self.title)
        self.players[anchor] = player
        return player

    def for_video(self, video_id):
        return self.players[f"player-preview-{video_id}"]


class LabelPromptStub:
    def __init__(self, answer="Label"):
        self.answer = answer
        self.calls = []

    def __call__(self, video, start, end, info, default):
        self.calls.append((video.id, start, end, info.key, default))
        return self.answer


def video_record(video_id=1, name="Lecture", source_ref="abc123", duration=100, bpm=None, labels=None):
    return {
        "id": video_id,
        "name": name,
        "sourceRef": source_ref,
        "duration": duration,
        "bpm": bpm,
        "timeLabels": labels or [],
    }


@pytest.fixture
def prefs():
    return MemoryPreferenceStore()


@pytest.fixture
def registry(prefs):
    reg = MarkerTypeRegistry(prefs)
    reg.load()
    return reg


@pytest.fixture
def remote():
    return FakeRemote([
        video_record(1, "Lecture", "abc123", duration=100),
        video_record(2, "Talk", "def456", duration=60),
    ])


@pytest.fixture
def store(remote, registry):
    s = AnnotationStore(remote, registry, dispatch=run_inline)
    s.load()
    remote.writes.clear()
    return s


@pytest.fixture
def factory():
    return PlayerFactory()


@pytest.fixture
def readiness():
    r = PlayerApiReadiness()
    r.fire()
    return r


@pytest.fixture
def playback(store, factory, readiness):
    sync = PlaybackSync(store, factory, readiness)
    sync.start()
    yield sync
    sync.dispose()


@pytest.fixture
def prompt():
    return LabelPromptStub()


@pytest.fixture
def session(store, registry, playback, prompt):
    return AnnotationSession(store, registry, playback, prompt)


@pytest.fixture
def bounds():
    # 100 px wide timeline starting at x=0
    return QRectF(0, 0, 100, 10)


def make_ready(factory, video_id):
    player = factory.for_video(video_id)
    player.ready.emit()
    return player
