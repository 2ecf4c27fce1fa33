import json

from marker_annote.config import PREFERENCES_KEY
from marker_annote.domain import MARKER_COLOR_POOL, NEUTRAL_COLOR
from marker_annote.marker_types import MarkerTypeRegistry, MemoryPreferenceStore, PreferenceStore


class BrokenPreferenceStore(PreferenceStore):
    def get(self, key):
        return None

    def set(self, key, value):
        raise OSError("quota exceeded")


def test_empty_preferences_seed_default_types(registry, prefs):
    assert registry.keys() == ["question", "summary", "action", "reference"]
    assert registry.get("question").hex == MARKER_COLOR_POOL[0]
    stored = json.loads(prefs.get(PREFERENCES_KEY))
    assert stored["summary"] == {"hex": MARKER_COLOR_POOL[1], "displayName": "Summary"}


def test_load_reads_stored_registry():
    prefs = MemoryPreferenceStore({PREFERENCES_KEY: json.dumps({"Chorus": {"hex": "#123456", "displayName": "Chorus"}})})
    reg = MarkerTypeRegistry(prefs)
    reg.load()
    assert reg.keys() == ["chorus"]
    assert reg.color_for("  CHORUS ") == "#123456"


def test_corrupt_preferences_leave_empty_registry():
    reg = MarkerTypeRegistry(MemoryPreferenceStore({PREFERENCES_KEY: "{not json"}))
    reg.load()
    assert len(reg) == 0


def test_normalize():
    assert MarkerTypeRegistry.normalize("  Question ") == "question"
    assert MarkerTypeRegistry.normalize("   ") == ""
    assert MarkerTypeRegistry.normalize(None) == ""


def test_resolve_creates_type_round_robin_and_persists(registry, prefs):
    color = registry.resolve("  Verse ")
    assert color == MARKER_COLOR_POOL[4 % len(MARKER_COLOR_POOL)]
    info = registry.get("verse")
    assert info.display_name == "Verse"
    assert json.loads(prefs.get(PREFERENCES_KEY))["verse"]["hex"] == color


def test_resolve_known_type_does_not_reregister(registry):
    size = len(registry)
    assert registry.resolve("QUESTION") == MARKER_COLOR_POOL[0]
    assert len(registry) == size


def test_palette_wraps_after_eight_types():
    reg = MarkerTypeRegistry(MemoryPreferenceStore({PREFERENCES_KEY: "{}"}))
    reg.load()
    colors = [reg.resolve(f"type{i}") for i in range(9)]
    assert colors[:8] == MARKER_COLOR_POOL
    assert colors[8] == MARKER_COLOR_POOL[0]


def test_empty_type_resolves_to_neutral_without_registering(registry):
    size = len(registry)
    assert registry.resolve("   ") == NEUTRAL_COLOR
    assert registry.resolve("") == NEUTRAL_COLOR
    assert len(registry) == size


def test_unknown_type_color_lookup_does_not_register(registry):
    assert registry.color_for("nope") == NEUTRAL_COLOR
    assert "nope" not in registry


def test_preference_write_failure_is_not_fatal():
    reg = MarkerTypeRegistry(BrokenPreferenceStore())
    reg.load()
    assert reg.resolve("bridge") == MARKER_COLOR_POOL[len(reg) - 1]
    assert "bridge" in reg


def test_set_active_toggles(registry):
    seen = []
    registry.active_changed.connect(seen.append)

    assert registry.set_active("Question") == "question"
    assert registry.active == "question"
    assert registry.set_active("question") is None
    assert registry.active is None
    registry.set_active("summary")
    registry.set_active("action")
    assert registry.active == "action"
    assert seen == ["question", None, "summary", "action"]


def test_create_registers_and_activates(registry):
    assert registry.create("  Drop ") == "drop"
    assert registry.active == "drop"
    assert registry.get("drop").display_name == "Drop"
    # creating the active type again keeps it active
    assert registry.create("drop") == "drop"
    assert registry.active == "drop"
    assert registry.create("  ") is None
