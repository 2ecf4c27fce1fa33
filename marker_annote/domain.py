# marker_annote/domain.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


# -----------------------------
# Marker types / Colors
# -----------------------------

# Assigned round-robin to newly created marker types.
MARKER_COLOR_POOL: List[str] = [
    "#0984e3",  # blue
    "#fdcb6e",  # yellow
    "#d63031",  # red
    "#00b894",  # green
    "#6c5ce7",  # purple
    "#ff7675",  # salmon
    "#2d3436",  # dark grey
    "#e17055",  # coral
]

# Used for empty/unknown types; never registered.
NEUTRAL_COLOR = "#b2bec3"

# (key, display name) seeded into an empty registry.
DEFAULT_MARKER_TYPES: List[tuple] = [
    ("question", "Question"),
    ("summary", "Summary"),
    ("action", "Action"),
    ("reference", "Reference"),
]


def normalize_type(type_name: Optional[str]) -> str:
    """Normalize a marker type to its registry key ("" means invalid)."""
    if not type_name:
        return ""
    return str(type_name).strip().lower()


# -----------------------------
# Core Dataclasses
# -----------------------------

@dataclass
class Marker:
    """
    A labeled [start, end) interval on a video's timeline, in whole seconds.
    """
    start: int
    end: int
    label: str
    type: str

    def to_dict(self) -> Dict:
        return {
            "start": int(self.start),
            "end": int(self.end),
            "label": self.label,
            "type": self.type,
        }

    @staticmethod
    def from_dict(d: Dict) -> "Marker":
        # Legacy point markers: {"time": t} -> {"start": t, "end": t + 1}
        if d.get("start") is None and d.get("time") is not None:
            start = int(d["time"])
            end = int(d["end"]) if d.get("end") is not None else start + 1
        else:
            start = int(d.get("start", 0))
            end = int(d.get("end", start))
        if end < start:
            end = start
        return Marker(
            start=start,
            end=end,
            label=str(d.get("label", "")),
            type=normalize_type(d.get("type", "")),
        )


@dataclass
class MarkerType:
    key: str
    hex: str
    display_name: str

    @property
    def icon(self) -> str:
        return self.display_name[:1] or "I"

    def to_dict(self) -> Dict:
        return {"hex": self.hex, "displayName": self.display_name}

    @staticmethod
    def from_dict(key: str, d: Dict) -> "MarkerType":
        return MarkerType(
            key=normalize_type(key),
            hex=str(d.get("hex", NEUTRAL_COLOR)),
            display_name=str(d.get("displayName", key)),
        )


@dataclass
class Video:
    """
    One annotated video.

    source_ref is the player's identifier for the media (URL, path or an
    external video id). current_time / is_playing are transient and never
    written to the remote store.
    """
    id: int
    name: str
    source_ref: str
    duration: int = 0
    bpm: Optional[int] = None
    time_labels: List[Marker] = field(default_factory=list)

    current_time: int = 0
    is_playing: bool = False

    def sort_markers(self) -> None:
        # list.sort is stable: ties keep insertion order
        self.time_labels.sort(key=lambda m: m.start)

    def to_dict(self) -> Dict:
        return {
            "id": int(self.id),
            "name": self.name,
            "sourceRef": self.source_ref,
            "timeLabels": [m.to_dict() for m in self.time_labels],
            "bpm": self.bpm,
            "duration": int(self.duration or 0),
        }

    @staticmethod
    def from_dict(d: Dict) -> "Video":
        source_ref = d.get("sourceRef")
        if source_ref is None:
            source_ref = d.get("videoId", "")
        bpm = d.get("bpm")
        video = Video(
            id=int(d["id"]),
            name=str(d.get("name", "")),
            source_ref=str(source_ref),
            duration=int(d.get("duration") or 0),
            bpm=int(bpm) if bpm is not None else None,
            time_labels=[Marker.from_dict(m) for m in (d.get("timeLabels") or [])],
        )
        video.sort_markers()
        return video


@dataclass
class MarkerGroup:
    """All markers of one type on a video, for the grouped list view."""
    key: str
    display_name: str
    color_hex: str
    icon: str
    markers: List[Marker] = field(default_factory=list)


# -----------------------------
# Seed data
# -----------------------------

def seed_videos() -> List[Video]:
    """Built-in videos shown when the remote store cannot be read."""
    return [
        Video(
            id=1,
            name="Vue 3 Core Concepts and the Composition API",
            source_ref="acvIVA9-FMQ",
            duration=0,
            bpm=120,
            time_labels=[Marker(start=5, end=10, label="Vue core differences (FALLBACK)", type="summary")],
        ),
        Video(
            id=2,
            name="TypeScript Complete Tutorial: From Basics to Practice",
            source_ref="K544Q2kHhW8",
            duration=0,
            bpm=None,
            time_labels=[Marker(start=10, end=25, label="Type system overview (FALLBACK)", type="summary")],
        ),
    ]
