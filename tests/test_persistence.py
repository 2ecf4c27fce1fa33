import json
import threading

import pytest
import requests

from marker_annote.persistence import (
    BackgroundDispatcher,
    RemoteStoreError,
    RemoteVideoStore,
    atomic_write_json,
    read_json,
)


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self.reason = "OK" if status_code < 400 else "Error"
        self._body = body
        self._text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(body=[])
        self.error = error
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append(("GET", url, None, None))
        if self.error:
            raise self.error
        return self.response

    def put(self, url, data=None, headers=None, timeout=None):
        self.requests.append(("PUT", url, data, headers))
        if self.error:
            raise self.error
        return self.response


ENDPOINT = "http://localhost:3000/api/videos"


def test_fetch_returns_list():
    session = FakeSession(FakeResponse(body=[{"id": 1}]))
    assert RemoteVideoStore(ENDPOINT, session=session).fetch() == [{"id": 1}]
    assert session.requests[0][:2] == ("GET", ENDPOINT)


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("refused")),
        FakeSession(FakeResponse(status_code=500, body={"message": "boom"})),
        FakeSession(FakeResponse(text="<html>")),
        FakeSession(FakeResponse(body={"videos": []})),
    ],
)
def test_fetch_failures_raise_remote_store_error(session):
    with pytest.raises(RemoteStoreError):
        RemoteVideoStore(ENDPOINT, session=session).fetch()


def test_replace_puts_full_json_array():
    session = FakeSession(FakeResponse(body={"message": "Saved"}))
    videos = [{"id": 1, "name": "Lecture", "timeLabels": []}]

    RemoteVideoStore(ENDPOINT, session=session).replace(videos)

    method, url, data, headers = session.requests[0]
    assert (method, url) == ("PUT", ENDPOINT)
    assert headers["Content-Type"] == "application/json"
    assert json.loads(data.decode("utf-8")) == videos


def test_replace_error_carries_server_message():
    session = FakeSession(FakeResponse(status_code=500, body={"message": "disk full"}))
    with pytest.raises(RemoteStoreError, match="disk full"):
        RemoteVideoStore(ENDPOINT, session=session).replace([{"id": 1}])


def test_replace_network_error():
    session = FakeSession(error=requests.Timeout("slow"))
    with pytest.raises(RemoteStoreError):
        RemoteVideoStore(ENDPOINT, session=session).replace([{"id": 1}])


def test_atomic_write_json_roundtrip(tmp_path):
    path = tmp_path / "nested" / "videos.json"
    atomic_write_json(str(path), [{"id": 1, "name": "Vidéo"}])

    assert read_json(str(path)) == [{"id": 1, "name": "Vidéo"}]
    assert [p.name for p in path.parent.iterdir()] == ["videos.json"]


def test_background_dispatcher_runs_jobs_in_order():
    seen = []
    lock = threading.Lock()
    dispatcher = BackgroundDispatcher()

    def job(n):
        def run():
            with lock:
                seen.append(n)
        return run

    for n in range(5):
        dispatcher(job(n))
    assert dispatcher.wait(5000)
    assert seen == [0, 1, 2, 3, 4]


def test_background_dispatcher_survives_failing_job():
    seen = []
    dispatcher = BackgroundDispatcher()

    def boom():
        raise RuntimeError("network down")

    dispatcher(boom)
    dispatcher(lambda: seen.append("after"))
    assert dispatcher.wait(5000)
    assert seen == ["after"]
