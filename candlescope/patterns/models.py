from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Literal

from candlescope.core.errors import InvalidInputError

Signal = Literal["BUY", "SELL", "NEUTRAL"]
Category = Literal["candlestick", "chart", "harmonic", "volume"]
SwingKind = Literal["high", "low"]


@dataclass(frozen=True)
class Candle:
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class SwingPoint:
    index: int
    time: int
    price: float
    kind: SwingKind


@dataclass(frozen=True)
class PatternMatch:
    type: str
    category: Category
    index: int
    time: int
    strength: float  # 0..1, local quality of the match
    signal: Signal
    confidence: float  # 0..100, strength scaled by the pattern weight
    description: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PatternDetections:
    candlestick: list[PatternMatch] = field(default_factory=list)
    chart: list[PatternMatch] = field(default_factory=list)
    harmonic: list[PatternMatch] = field(default_factory=list)
    volume: list[PatternMatch] = field(default_factory=list)

    def all(self) -> Iterator[PatternMatch]:
        yield from self.candlestick
        yield from self.chart
        yield from self.harmonic
        yield from self.volume

    def count(self) -> int:
        return len(self.candlestick) + len(self.chart) + len(self.harmonic) + len(self.volume)


@dataclass(frozen=True)
class PatternAnalysis:
    symbol: str | None
    timeframe: str | None
    candles: int
    price: float | None
    patterns: PatternDetections
    signals: list[PatternMatch]
    strength: float
    accuracy: float


def _f(x: Any) -> float:
    # Unconvertible values become NaN so validation can point at them.
    try:
        return float(x)
    except (TypeError, ValueError):
        return math.nan


def _t(x: Any, default: int) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return int(default)


def to_candles(raw: list[Any]) -> list[Candle]:
    """Coerce dicts or candle-like objects into `Candle`s, preserving order.

    Accepts `time` or `ts` for the timestamp; a missing timestamp falls back to
    the sequence index.
    """

    out: list[Candle] = []
    for i, c in enumerate(raw or []):
        if isinstance(c, Candle):
            out.append(c)
            continue
        if isinstance(c, dict):
            t = c.get("time", c.get("ts"))
            out.append(
                Candle(
                    time=_t(t, i),
                    open=_f(c.get("open")),
                    high=_f(c.get("high")),
                    low=_f(c.get("low")),
                    close=_f(c.get("close")),
                    volume=_f(c.get("volume") or 0.0),
                )
            )
        else:
            t = getattr(c, "time", getattr(c, "ts", None))
            out.append(
                Candle(
                    time=_t(t, i),
                    open=_f(getattr(c, "open", None)),
                    high=_f(getattr(c, "high", None)),
                    low=_f(getattr(c, "low", None)),
                    close=_f(getattr(c, "close", None)),
                    volume=_f(getattr(c, "volume", 0.0) or 0.0),
                )
            )
    return out


def validate_candles(candles: list[Candle]) -> None:
    """Raise InvalidInputError for the first candle breaking the OHLCV invariants."""

    for i, c in enumerate(candles):
        prices = (c.open, c.high, c.low, c.close)
        if not all(math.isfinite(p) for p in prices):
            raise InvalidInputError(i, "non-finite price")
        if min(prices) <= 0:
            raise InvalidInputError(i, "non-positive price")
        if c.high < c.low:
            raise InvalidInputError(i, f"high {c.high} < low {c.low}")
        if min(c.open, c.close) < c.low or max(c.open, c.close) > c.high:
            raise InvalidInputError(i, "open/close outside the high-low range")
        if not math.isfinite(c.volume) or c.volume < 0:
            raise InvalidInputError(i, "volume must be a non-negative number")


# --- candle geometry shared by the detectors ---

def candle_range(c: Candle) -> float:
    return max(0.0, c.high - c.low)


def body(c: Candle) -> float:
    return abs(c.close - c.open)


def upper_shadow(c: Candle) -> float:
    return max(0.0, c.high - max(c.open, c.close))


def lower_shadow(c: Candle) -> float:
    return max(0.0, min(c.open, c.close) - c.low)


def is_bull(c: Candle) -> bool:
    return c.close > c.open


def is_bear(c: Candle) -> bool:
    return c.close < c.open


def clamp01(score: float) -> float:
    if not math.isfinite(float(score)):
        return 0.0
    return float(max(0.0, min(1.0, score)))


def make_match(
    *,
    type: str,
    category: Category,
    index: int,
    time: int,
    strength: float,
    weight: float,
    signal: Signal,
    description: str,
    details: dict[str, Any] | None = None,
) -> PatternMatch:
    s = clamp01(strength)
    return PatternMatch(
        type=type,
        category=category,
        index=int(index),
        time=int(time),
        strength=s,
        signal=signal,
        confidence=float(max(0.0, min(100.0, s * float(weight)))),
        description=description,
        details=dict(details or {}),
    )


def rank(matches: list[PatternMatch], top_n: int | None = None) -> list[PatternMatch]:
    out = sorted(matches, key=lambda m: (-float(m.confidence), m.index, m.type))
    if top_n is None:
        return out
    return out[: max(0, int(top_n))]
