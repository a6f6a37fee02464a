from __future__ import annotations

import engine.retry as retry


def test_exhaustion_returns_none_after_fixed_delays(monkeypatch) -> None:
    slept = []
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: slept.append(seconds))

    calls = {"count": 0}

    def _always_fail():
        calls["count"] += 1
        raise RuntimeError("connection reset")

    assert retry.call_with_retry(_always_fail, attempts=3, delay=2.0, label="tmdb:find") is None
    assert calls["count"] == 3
    # Sleeps happen between attempts only.
    assert slept == [2.0, 2.0]


def test_returns_first_success(monkeypatch) -> None:
    slept = []
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: slept.append(seconds))

    calls = {"count": 0}

    def _flaky():
        calls["count"] += 1
        if calls["count"] == 1:
            raise RuntimeError("timeout")
        return {"ok": True}

    assert retry.call_with_retry(_flaky, attempts=3, delay=0.5) == {"ok": True}
    assert calls["count"] == 2
    assert slept == [0.5]


def test_single_attempt_never_sleeps(monkeypatch) -> None:
    slept = []
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: slept.append(seconds))

    def _fail():
        raise RuntimeError("boom")

    assert retry.call_with_retry(_fail, attempts=0, delay=1.0) is None
    assert slept == []


def test_non_transient_error_gives_up_immediately(monkeypatch) -> None:
    slept = []
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: slept.append(seconds))

    calls = {"count": 0}

    def _not_found():
        calls["count"] += 1
        raise LookupError("HTTP 404")

    result = retry.call_with_retry(
        _not_found, attempts=3, delay=2.0, retry_on=lambda exc: not isinstance(exc, LookupError)
    )

    assert result is None
    assert calls["count"] == 1
    assert slept == []


def test_logged_errors_never_carry_api_keys(monkeypatch, caplog) -> None:
    monkeypatch.setattr(retry.time, "sleep", lambda seconds: None)

    def _refused():
        raise ConnectionError(
            "Max retries exceeded with url: /3/movie/27205?api_key=SECRETKEY&append_to_response=external_ids"
        )

    with caplog.at_level("INFO"):
        assert retry.call_with_retry(_refused, attempts=2, delay=0.1, label="tmdb:details") is None

    messages = [record.getMessage() for record in caplog.records]
    assert any("retry_exhausted label=tmdb:details" in msg for msg in messages)
    assert all("SECRETKEY" not in msg for msg in messages)
    assert any("api_key=[REDACTED]" in msg for msg in messages)
