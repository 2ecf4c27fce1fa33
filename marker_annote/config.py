# marker_annote/config.py
from __future__ import annotations

import os

from dotenv import load_dotenv

# Values from a local .env file override the defaults below.
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# -----------------------------
# Remote store
# -----------------------------

API_ENDPOINT = os.environ.get("MARKER_ANNOTE_API_ENDPOINT", "http://localhost:3000/api/videos")
HTTP_TIMEOUT = _env_float("MARKER_ANNOTE_HTTP_TIMEOUT", 5.0)

DATA_FILE = os.environ.get("MARKER_ANNOTE_DATA_FILE", os.path.join("data", "videos.json"))
SERVER_HOST = os.environ.get("MARKER_ANNOTE_HOST", "127.0.0.1")
SERVER_PORT = _env_int("MARKER_ANNOTE_PORT", 3000)

LOG_LEVEL = os.environ.get("MARKER_ANNOTE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "[%(asctime)s] %(levelname)s:%(name)s: %(message)s"

# -----------------------------
# Playback / interaction
# -----------------------------

POLL_INTERVAL_MS = 500
PLAYER_ANCHOR_PREFIX = "player-preview-"

MAX_TAP_INTERVAL_MS = 2000
MAX_TAPS = 10
MIN_TAPS_FOR_BPM = 3

# -----------------------------
# Local preferences (QSettings)
# -----------------------------

SETTINGS_ORG = "marker-annote"
SETTINGS_APP = "marker-annote"
PREFERENCES_KEY = "customMarkerTypes"
