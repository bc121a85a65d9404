from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from candlescope.patterns.models import (
    Candle,
    PatternMatch,
    Signal,
    body,
    candle_range,
    is_bear,
    is_bull,
    lower_shadow,
    make_match,
    rank,
    upper_shadow,
)

# Each detector receives the last `window` candles ending at the candle under
# test and returns (strength, details), or None when the pattern is absent.
# A match may score 0 (a doji at the body-ratio limit) and is still reported.
Hit = tuple[float, dict[str, Any]]
Detector = Callable[[list[Candle]], Hit | None]


@dataclass(frozen=True)
class CandlestickDef:
    type: str
    signal: Signal
    window: int
    weight: float
    description: str
    detector: Detector


def _ratio(x: float, denom: float) -> float:
    if denom <= 1e-12:
        return 0.0
    return float(x / denom)


# --- Single candle patterns ---

def _detect_doji(cs: list[Candle]) -> Hit | None:
    c = cs[-1]
    r = candle_range(c)
    if r <= 0:
        return None
    body_ratio = _ratio(body(c), r)
    if body_ratio > 0.10:
        return None
    # Smaller body, stronger doji; an exact 0.10 ratio is a zero-strength doji.
    return 1.0 - 10.0 * body_ratio, {"body_ratio": body_ratio}


def _detect_hammer_like(cs: list[Candle], *, inverted: bool) -> Hit | None:
    prev, c = cs[-2], cs[-1]
    r = candle_range(c)
    if r <= 0:
        return None
    b = body(c)
    uw = upper_shadow(c)
    lw = lower_shadow(c)
    body_ratio = _ratio(b, r)
    if body_ratio > 0.30:
        return None

    # Shooting star: long upper shadow printed as a new high after the prior candle.
    if inverted:
        if uw < 2.0 * b or lw > 0.5 * b:
            return None
        if not c.high > prev.high:
            return None
        return 0.8 * _ratio(uw, r) + 0.2, {"body_ratio": body_ratio, "upper_shadow": uw, "lower_shadow": lw}

    if lw < 2.0 * b or uw > 0.5 * b:
        return None
    if not c.low < prev.low:
        return None
    return 0.8 * _ratio(lw, r) + 0.2, {"body_ratio": body_ratio, "upper_shadow": uw, "lower_shadow": lw}


# --- Two candle patterns ---

def _detect_engulfing(cs: list[Candle], *, bullish: bool) -> Hit | None:
    a, b = cs[-2], cs[-1]
    if bullish:
        if not (is_bear(a) and is_bull(b)):
            return None
        if not (b.open < a.close and b.close > a.open):
            return None
    else:
        if not (is_bull(a) and is_bear(b)):
            return None
        if not (b.open > a.close and b.close < a.open):
            return None
    size_ratio = _ratio(body(b), body(a))
    return min(size_ratio, 2.0) / 2.0, {"body_ratio": size_ratio}


# --- Three candle patterns ---

def _detect_star(cs: list[Candle], *, morning: bool) -> Hit | None:
    a, b, c = cs[-3], cs[-2], cs[-1]
    if not body(b) < body(a) * 0.5:
        return None
    mid = (a.open + a.close) / 2.0
    if morning:
        if not (is_bear(a) and is_bull(c)):
            return None
        if not (b.high < a.close and c.close > mid):
            return None
    else:
        if not (is_bull(a) and is_bear(c)):
            return None
        if not (b.low > a.close and c.close < mid):
            return None
    return 0.8, {"midpoint": mid}


def _build_catalog() -> list[CandlestickDef]:
    return [
        CandlestickDef("doji", "NEUTRAL", 1, 60.0, "Market indecision - potential reversal", _detect_doji),
        CandlestickDef("hammer", "BUY", 2, 75.0, "Bullish reversal signal", lambda cs: _detect_hammer_like(cs, inverted=False)),
        CandlestickDef("shooting_star", "SELL", 2, 75.0, "Bearish reversal signal", lambda cs: _detect_hammer_like(cs, inverted=True)),
        CandlestickDef("engulfing", "BUY", 2, 80.0, "Bullish engulfing pattern", lambda cs: _detect_engulfing(cs, bullish=True)),
        CandlestickDef("engulfing", "SELL", 2, 80.0, "Bearish engulfing pattern", lambda cs: _detect_engulfing(cs, bullish=False)),
        CandlestickDef("morning_star", "BUY", 3, 85.0, "Strong bullish reversal pattern", lambda cs: _detect_star(cs, morning=True)),
        CandlestickDef("evening_star", "SELL", 3, 85.0, "Strong bearish reversal pattern", lambda cs: _detect_star(cs, morning=False)),
    ]


CATALOG: list[CandlestickDef] = _build_catalog()


def detect_candlestick_patterns(candles: list[Candle], *, top_n: int | None = 10) -> list[PatternMatch]:
    out: list[PatternMatch] = []
    for i, c in enumerate(candles):
        for p in CATALOG:
            if i + 1 < p.window:
                continue
            hit = p.detector(candles[i + 1 - p.window : i + 1])
            if hit is None:
                continue
            strength, details = hit
            out.append(
                make_match(
                    type=p.type,
                    category="candlestick",
                    index=i,
                    time=c.time,
                    strength=strength,
                    weight=p.weight,
                    signal=p.signal,
                    description=p.description,
                    details=details,
                )
            )
    return rank(out, top_n)
