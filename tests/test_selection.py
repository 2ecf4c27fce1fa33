import pytest
from conftest import make_ready

from marker_annote.domain import Marker, MarkerType
from marker_annote.selection import default_label
from marker_annote.timeutils import PointerEvent


@pytest.fixture
def selector(session):
    session.select_video(1)
    return session.selector


def test_default_label():
    info = MarkerType(key="question", hex="#0984e3", display_name="Question")
    assert default_label(info, 75) == "Question at 1:15"


def test_drag_with_active_type_creates_marker(selector, session, store, registry, prompt, remote, bounds):
    registry.set_active("question")

    selector.start(PointerEvent(client_x=10), bounds)
    assert selector.is_selecting
    selector.move(PointerEvent(client_x=20), bounds)
    assert store.get_video(1).current_time == 20
    selector.end()

    assert prompt.calls == [(1, 10, 20, "question", "Question at 0:10")]
    assert store.get_video(1).time_labels == [Marker(start=10, end=20, label="Label", type="question")]
    assert remote.writes[-1][0]["timeLabels"] == [{"start": 10, "end": 20, "label": "Label", "type": "question"}]
    assert not selector.is_selecting
    assert selector.selection.selected_duration == 0
    assert registry.active is None


def test_backwards_drag_is_normalized(selector, store, registry, bounds):
    registry.set_active("action")
    selector.start(PointerEvent(client_x=60), bounds)
    selector.move(PointerEvent(client_x=40), bounds)
    selector.end()

    marker = store.get_video(1).time_labels[0]
    assert (marker.start, marker.end) == (40, 60)


def test_drag_preview_seeks_without_resuming(selector, factory, bounds):
    player = make_ready(factory, 1)
    selector.start(PointerEvent(client_x=10), bounds)
    selector.move(PointerEvent(client_x=35), bounds)
    assert player.calls == [("seek_to", 35, False)]


def test_point_gesture_with_active_type_spans_one_second(selector, store, registry, bounds):
    registry.set_active("summary")
    selector.start(PointerEvent(client_x=33), bounds)
    selector.end()

    marker = store.get_video(1).time_labels[0]
    assert (marker.start, marker.end, marker.type) == (33, 34, "summary")


def test_click_without_active_type_seeks(selector, store, factory, prompt, bounds):
    player = make_ready(factory, 1)
    selector.start(PointerEvent(client_x=5), bounds)
    selector.end()

    assert player.calls[0] == ("seek_to", 5, True)
    assert ("play",) in player.calls
    assert store.get_video(1).time_labels == []
    assert prompt.calls == []
    assert not selector.is_selecting


def test_drag_without_active_type_seeks_to_range_start(selector, store, factory, bounds):
    player = make_ready(factory, 1)
    selector.start(PointerEvent(client_x=50), bounds)
    selector.move(PointerEvent(client_x=20), bounds)
    selector.end()

    assert ("seek_to", 20, True) in player.calls
    assert store.get_video(1).time_labels == []


def test_click_helper(selector, store, registry, factory, bounds):
    player = make_ready(factory, 1)
    selector.click(PointerEvent(client_x=70), bounds)
    assert player.calls[0] == ("seek_to", 70, True)

    registry.set_active("reference")
    selector.click(PointerEvent(client_x=70), bounds)
    assert store.get_video(1).time_labels[0].start == 70


def test_presses_on_markers_and_secondary_buttons_are_ignored(selector, bounds):
    selector.start(PointerEvent(client_x=10, on_marker=True), bounds)
    assert not selector.is_selecting
    selector.start(PointerEvent(client_x=10, button=2), bounds)
    assert not selector.is_selecting


def test_touch_start_has_no_button(selector, bounds):
    selector.start(PointerEvent(client_x=0, touches=(25.0,), button=None, buttons=None), bounds)
    assert selector.is_selecting
    assert selector.selection.selection_start == 25


def test_stale_move_is_ignored(selector, bounds):
    selector.start(PointerEvent(client_x=10), bounds)
    selector.move(PointerEvent(client_x=50, buttons=0), bounds)
    assert selector.selection.selection_end == 10


def test_move_without_press_is_ignored(selector, store, bounds):
    selector.move(PointerEvent(client_x=50), bounds)
    assert not selector.is_selecting
    assert store.get_video(1).current_time == 0


def test_start_pauses_playing_video(selector, store, factory, bounds):
    player = make_ready(factory, 1)
    player.play()

    selector.start(PointerEvent(client_x=10), bounds)

    assert player.calls[-1] == ("pause",)
    assert not store.get_video(1).is_playing


@pytest.mark.parametrize("answer", [None, "   "])
def test_cancelled_or_empty_label_aborts(selector, store, registry, prompt, remote, bounds, answer):
    prompt.answer = answer
    registry.set_active("question")
    selector.start(PointerEvent(client_x=10), bounds)
    selector.move(PointerEvent(client_x=20), bounds)
    selector.end()

    assert store.get_video(1).time_labels == []
    assert remote.writes == []
    assert not selector.is_selecting
    assert registry.active is None


def test_label_is_trimmed(selector, store, registry, prompt, bounds):
    prompt.answer = "  Chorus starts  "
    registry.set_active("summary")
    selector.start(PointerEvent(client_x=10), bounds)
    selector.end()
    assert store.get_video(1).time_labels[0].label == "Chorus starts"


def test_cancel_keeps_active_type(selector, registry, bounds):
    registry.set_active("question")
    selector.start(PointerEvent(client_x=10), bounds)
    selector.move(PointerEvent(client_x=30), bounds)
    selector.cancel()

    assert not selector.is_selecting
    assert selector.selection.selected_duration == 0
    assert registry.active == "question"


def test_zero_duration_resolves_to_start(session, store, registry, bounds):
    store.get_video(2).duration = 0
    session.select_video(2)
    registry.set_active("question")
    session.selector.start(PointerEvent(client_x=80), bounds)
    session.selector.end()
    marker = store.get_video(2).time_labels[0]
    assert (marker.start, marker.end) == (0, 1)


def test_overlay_tracks_selection(selector, registry, bounds):
    assert selector.overlay() is None
    registry.set_active("question")
    selector.start(PointerEvent(client_x=40), bounds)
    selector.move(PointerEvent(client_x=20), bounds)

    overlay = selector.overlay()
    assert overlay.start_fraction == pytest.approx(0.2)
    assert overlay.end_fraction == pytest.approx(0.4)
    assert overlay.color_hex == registry.get("question").hex


def test_gesture_without_video_is_ignored(session, bounds):
    session.selector.start(PointerEvent(client_x=10), bounds)
    assert not session.selector.is_selecting
