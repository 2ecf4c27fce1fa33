# marker_annote/persistence.py
from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Callable, Dict, List, Optional

import requests
from PyQt5.QtCore import QRunnable, QThreadPool

from .config import API_ENDPOINT, HTTP_TIMEOUT

logger = logging.getLogger(__name__)


class RemoteStoreError(Exception):
    """Network failure, non-success status or malformed body from the remote store."""


# -----------------------------
# Atomic file helpers (used by the file-store server)
# -----------------------------

def atomic_write_text(path: str, text: str, encoding: str = "utf-8") -> None:
    d = os.path.dirname(os.path.abspath(path))
    os.makedirs(d, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=d)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def atomic_write_json(path: str, payload) -> None:
    atomic_write_text(path, json.dumps(payload, indent=2, ensure_ascii=False) + "\n")


def read_json(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# -----------------------------
# HTTP client
# -----------------------------

class RemoteVideoStore:
    """
    Client for the two-endpoint file store:
      GET <endpoint>  -> JSON array of videos
      PUT <endpoint>  -> full replace with a JSON array
    """

    def __init__(
        self,
        endpoint: str = API_ENDPOINT,
        timeout: float = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.timeout = float(timeout)
        self._session = session or requests.Session()

    def fetch(self) -> List[Dict]:
        logger.info("Loading videos from %s", self.endpoint)
        try:
            resp = self._session.get(self.endpoint, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteStoreError(f"GET {self.endpoint} failed: {e}") from e

        if not resp.ok:
            raise RemoteStoreError(f"GET {self.endpoint} returned {resp.status_code} {resp.reason}")

        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteStoreError(f"GET {self.endpoint} returned invalid JSON") from e

        if not isinstance(data, list):
            raise RemoteStoreError(f"GET {self.endpoint} returned {type(data).__name__}, expected a list")
        logger.info("Loaded %d videos", len(data))
        return data

    def replace(self, videos: List[Dict]) -> None:
        try:
            resp = self._session.put(
                self.endpoint,
                data=json.dumps(videos, ensure_ascii=False).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteStoreError(f"PUT {self.endpoint} failed: {e}") from e

        if not resp.ok:
            detail = ""
            try:
                detail = str((resp.json() or {}).get("message", ""))
            except ValueError:
                pass
            raise RemoteStoreError(f"PUT {self.endpoint} returned {resp.status_code} {resp.reason}. {detail}".strip())
        logger.debug("Saved %d videos", len(videos))


# -----------------------------
# Fire-and-forget dispatch
# -----------------------------

Dispatcher = Callable[[Callable[[], None]], None]


class _Job(QRunnable):
    def __init__(self, fn: Callable[[], None]):
        super().__init__()
        self._fn = fn

    def run(self) -> None:
        try:
            self._fn()
        except Exception:
            logger.exception("Background job failed")


class BackgroundDispatcher:
    """
    Runs jobs on a single-thread QThreadPool so remote writes keep their order.
    Jobs are never awaited and cannot be cancelled once queued.
    """

    def __init__(self, pool: Optional[QThreadPool] = None):
        self._pool = pool or QThreadPool()
        self._pool.setMaxThreadCount(1)

    def __call__(self, fn: Callable[[], None]) -> None:
        self._pool.start(_Job(fn))

    def wait(self, msecs: int = -1) -> bool:
        return self._pool.waitForDone(msecs)


def run_inline(fn: Callable[[], None]) -> None:
    fn()
