# marker_annote/tempo.py
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TYPE_CHECKING

from .config import MAX_TAP_INTERVAL_MS, MAX_TAPS, MIN_TAPS_FOR_BPM
from .domain import Video

if TYPE_CHECKING:
    from .store import AnnotationStore

logger = logging.getLogger(__name__)


@dataclass
class TapTempoState:
    tap_times: List[float] = field(default_factory=list)  # monotonic ms
    display_bpm: Optional[float] = None
    max_tap_interval: float = MAX_TAP_INTERVAL_MS


def compute_bpm(taps: Sequence[float]) -> Optional[float]:
    """
    Average the consecutive inter-tap intervals and convert to BPM (1 decimal).

    Fewer than MIN_TAPS_FOR_BPM samples (a single interval) is too noisy: None.
    """
    if len(taps) < MIN_TAPS_FOR_BPM:
        return None
    intervals = [float(b) - float(a) for a, b in zip(taps, taps[1:])]
    average = sum(intervals) / len(intervals)
    if average <= 0:
        return None
    return round(60000.0 / average, 1)


def _round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


class TempoEstimator:
    """
    Tap tempo: turns a bursty sequence of taps into a BPM estimate.

    A gap longer than max_tap_interval since the last tap starts a new sequence.
    Only the most recent MAX_TAPS taps are kept.
    """

    def __init__(self, store: Optional["AnnotationStore"] = None, max_taps: int = MAX_TAPS):
        self._store = store
        self._max_taps = int(max_taps)
        self.state = TapTempoState()

    @property
    def tap_times(self) -> List[float]:
        return list(self.state.tap_times)

    @property
    def display_bpm(self) -> Optional[float]:
        return self.state.display_bpm

    def register_tap(self, now_ms: Optional[float] = None) -> Optional[float]:
        if now_ms is None:
            now_ms = time.monotonic() * 1000.0
        taps = self.state.tap_times

        if taps and (now_ms - taps[-1]) > self.state.max_tap_interval:
            self.reset()
            self.state.tap_times.append(now_ms)
            return None

        taps.append(now_ms)
        if len(taps) > self._max_taps:
            del taps[0]

        if len(taps) >= MIN_TAPS_FOR_BPM:
            self.state.display_bpm = compute_bpm(taps)
        return self.state.display_bpm

    def reset(self) -> None:
        self.state.tap_times = []
        self.state.display_bpm = None
        logger.debug("Tap tempo reset")

    def commit(self, video: Optional[Video]) -> bool:
        """Store the current estimate on `video` (rounded) and reset."""
        if video is None or not self.state.display_bpm:
            logger.warning("No BPM estimate or no video selected; nothing to save")
            return False

        bpm = _round_half_up(self.state.display_bpm)
        if self._store is not None:
            self._store.set_bpm(video.id, bpm)
        else:
            video.bpm = bpm
        logger.info("BPM for video %s saved as %s", video.id, bpm)
        self.reset()
        return True
