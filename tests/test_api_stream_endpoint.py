from __future__ import annotations

from fastapi.testclient import TestClient

from api.main import create_app
from config.settings import Settings
from engine.stream_handler import StreamRecord


class _FakeHandler:
    def __init__(self):
        self.calls = []

    async def get_streams_async(self, kind, identifier, credentials):
        self.calls.append((kind, identifier, credentials.tmdb_api_key))
        return [StreamRecord(title="[youtube.com] Inception", external_url="https://www.youtube.com/watch?v=abc")]


def _client(handler):
    return TestClient(create_app(settings=Settings(), handler=handler))


def test_stream_endpoint_returns_stream_payloads(monkeypatch) -> None:
    monkeypatch.setenv("TMDB_API_KEY", "tmdb-key")
    handler = _FakeHandler()

    resp = _client(handler).get("/stream/series/tt0944947:1:5.json")

    assert resp.status_code == 200
    assert resp.json() == {
        "streams": [
            {
                "title": "[youtube.com] Inception",
                "externalUrl": "https://www.youtube.com/watch?v=abc",
                "behaviorHints": {"externalUrl": True},
            }
        ]
    }
    assert handler.calls == [("series", "tt0944947:1:5", "tmdb-key")]


def test_stream_endpoint_requires_tmdb_key(monkeypatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)
    handler = _FakeHandler()

    resp = _client(handler).get("/stream/movie/tt1375666.json")

    assert resp.status_code == 500
    assert resp.json() == {"err": "Server missing TMDB_API_KEY."}
    assert handler.calls == []


def test_stream_endpoint_rejects_unknown_content_type(monkeypatch) -> None:
    monkeypatch.setenv("TMDB_API_KEY", "tmdb-key")

    resp = _client(_FakeHandler()).get("/stream/channel/abc.json")

    assert resp.status_code == 404


def test_health() -> None:
    resp = _client(_FakeHandler()).get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
