from fastapi.testclient import TestClient
from loguru import logger

from candle_factory import GARTLEY_BULL, mk, waypoint_candles
from candlescope.core.settings import settings
from candlescope.main import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def _hammer_series():
    raw = [mk(i, 110.5 - i, 111.0 - i, 109.0 - i, 109.5 - i) for i in range(10)]
    raw.append(mk(10, 99.5, 100.0, 90.0, 100.0))
    return raw


def test_health_ok():
    r = _client().get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers.get("x-request-id")


def test_request_id_is_echoed():
    r = _client().get("/health", headers={"x-request-id": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"


def test_catalog_lists_every_pattern_once():
    r = _client().get("/api/patterns/catalog")
    assert r.status_code == 200
    body = r.json()
    types = [p["type"] for p in body["patterns"]]
    assert body["count"] == 17
    assert len(set(types)) == 17
    weights = {p["type"]: p["weight"] for p in body["patterns"]}
    assert weights["gartley"] == 88.0
    assert weights["doji"] == 60.0


def test_detect_returns_candlestick_matches():
    r = _client().post("/api/patterns/detect", json={"candles": _hammer_series(), "symbol": "ABC"})
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["symbol"] == "ABC"
    hammers = [m for m in body["patterns"]["candlestick"] if m["type"] == "hammer"]
    assert hammers and hammers[0]["signal"] == "BUY"
    assert body["patterns"]["chart"] == []


def test_detect_invalid_candle_is_422():
    raw = _hammer_series()
    raw[4]["high"] = raw[4]["low"] - 1.0
    r = _client().post("/api/patterns/detect", json={"candles": raw})
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert detail["error"] == "invalid_input"
    assert detail["index"] == 4


def test_analyze_short_series_is_422():
    r = _client().post("/api/patterns/analyze", json={"candles": waypoint_candles(GARTLEY_BULL)})
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert detail["error"] == "insufficient_data"
    assert detail["required"] == 100


def test_analyze_returns_signals(monkeypatch):
    monkeypatch.setattr(settings, "PATTERN_MIN_CANDLES", 50, raising=False)
    r = _client().post(
        "/api/patterns/analyze",
        json={"candles": waypoint_candles(GARTLEY_BULL), "symbol": "BTC/USDT", "timeframe": "1h"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["timeframe"] == "1h"
    assert [s["type"] for s in body["signals"]] == ["gartley"]
    assert body["accuracy"] > 80


def test_too_many_candles_is_413(monkeypatch):
    monkeypatch.setattr(settings, "PATTERN_MAX_CANDLES", 5, raising=False)
    r = _client().post("/api/patterns/detect", json={"candles": _hammer_series()})
    assert r.status_code == 413


def test_access_line_carries_detector_counts():
    client = _client()
    records = []
    sink = logger.add(lambda msg: records.append(msg.record), level="INFO")
    try:
        r = client.post(
            "/api/patterns/detect",
            json={"candles": _hammer_series(), "symbol": "ABC"},
            headers={"x-request-id": "req-1"},
        )
    finally:
        logger.remove(sink)

    assert r.status_code == 200
    access = [rec for rec in records if rec["message"].startswith("POST /api/patterns/detect")]
    assert len(access) == 1
    extra = access[0]["extra"]
    assert extra["rid"] == "req-1"
    assert extra["status"] == 200
    assert extra["symbol"] == "ABC"
    assert extra["candles"] == 11
    assert extra["matches"] >= 1
    assert "candles=11" in access[0]["message"]
