from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from candlescope.core.errors import InsufficientDataError, InvalidInputError
from candlescope.core.middleware import record_pattern_stats
from candlescope.core.settings import settings
from candlescope.patterns import candlestick, chart, harmonic, volume
from candlescope.patterns.detector import analyze_patterns, calculate_pattern_strength, detect_patterns
from candlescope.patterns.models import Candle

router = APIRouter(prefix="/patterns", tags=["patterns"])


class CandleIn(BaseModel):
    time: int | None = None
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


class PatternRequest(BaseModel):
    """Candles are supplied by the caller, oldest first."""

    candles: list[CandleIn] = Field(default_factory=list)
    symbol: str | None = None
    timeframe: str | None = None
    lookback: int | None = Field(default=None, ge=1, le=100)
    top_n: int | None = Field(default=None, ge=1, le=100)


def _candles(req: PatternRequest) -> list[Candle]:
    limit = int(settings.PATTERN_MAX_CANDLES)
    if len(req.candles) > limit:
        raise HTTPException(status_code=413, detail=f"too many candles: {len(req.candles)} > {limit}")
    return [
        Candle(
            time=int(c.time if c.time is not None else i),
            open=c.open,
            high=c.high,
            low=c.low,
            close=c.close,
            volume=c.volume,
        )
        for i, c in enumerate(req.candles)
    ]


def _unprocessable(e: Exception) -> HTTPException:
    if isinstance(e, InvalidInputError):
        detail: dict[str, Any] = {"error": "invalid_input", "message": str(e), "index": e.index, "reason": e.reason}
    elif isinstance(e, InsufficientDataError):
        detail = {"error": "insufficient_data", "message": str(e), "required": e.required, "got": e.got}
    else:
        detail = {"error": "pattern_error", "message": str(e)}
    return HTTPException(status_code=422, detail=detail)


@router.get("/catalog")
def catalog() -> dict[str, Any]:
    items: list[dict[str, Any]] = []
    seen: set[str] = set()
    for p in candlestick.CATALOG:
        if p.type in seen:
            continue
        seen.add(p.type)
        items.append({"type": p.type, "category": "candlestick", "weight": p.weight, "window": p.window})
    items += [{"type": k, "category": "chart", "weight": w} for k, w in chart.WEIGHTS.items()]
    items += [{"type": h.type, "category": "harmonic", "weight": h.weight} for h in harmonic.CATALOG]
    items += [{"type": k, "category": "volume", "weight": w} for k, w in volume.WEIGHTS.items()]
    return {"ok": True, "count": len(items), "patterns": items}


@router.post("/detect")
def detect(req: PatternRequest, request: Request) -> dict[str, Any]:
    record_pattern_stats(request, symbol=req.symbol, timeframe=req.timeframe, candles=len(req.candles))
    cs = _candles(req)
    try:
        det = detect_patterns(cs, lookback=req.lookback, top_n=req.top_n)
    except (InvalidInputError, InsufficientDataError) as e:
        raise _unprocessable(e) from e
    record_pattern_stats(request, matches=det.count())
    return {
        "ok": True,
        "symbol": req.symbol,
        "timeframe": req.timeframe,
        "count": det.count(),
        "patterns": asdict(det),
        "strength": calculate_pattern_strength(det),
    }


@router.post("/analyze")
def analyze(req: PatternRequest, request: Request) -> dict[str, Any]:
    record_pattern_stats(request, symbol=req.symbol, timeframe=req.timeframe, candles=len(req.candles))
    cs = _candles(req)
    try:
        res = analyze_patterns(
            cs,
            symbol=req.symbol,
            timeframe=req.timeframe,
            lookback=req.lookback,
            top_n=req.top_n,
        )
    except (InvalidInputError, InsufficientDataError) as e:
        raise _unprocessable(e) from e
    record_pattern_stats(request, matches=res.patterns.count(), signals=len(res.signals))
    return {"ok": True, **asdict(res)}
