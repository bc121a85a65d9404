from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from candlescope.patterns.models import Candle, PatternMatch, Signal, SwingPoint, make_match, rank
from candlescope.patterns.swings import Swings, Trendline, fit_line

WEIGHTS: dict[str, float] = {
    "head_shoulders": 90.0,
    "double_top": 85.0,
    "double_bottom": 85.0,
    "triangle": 70.0,
    "wedge": 75.0,
}

# Normalised slope (per candle, relative to mean price) below which a line is flat.
FLAT_SLOPE = 0.0005
SHOULDER_TOLERANCE = 0.05
DOUBLE_TOLERANCE = 0.03


def _point(p: SwingPoint) -> dict[str, Any]:
    return {"index": p.index, "time": p.time, "price": p.price}


def _head_shoulders(peaks: list[SwingPoint]) -> PatternMatch | None:
    if len(peaks) < 3:
        return None
    left, head, right = peaks[-3:]
    if not (head.price > left.price and head.price > right.price):
        return None
    if abs(left.price - right.price) / left.price >= SHOULDER_TOLERANCE:
        return None
    return make_match(
        type="head_shoulders",
        category="chart",
        index=right.index,
        time=right.time,
        strength=0.8,
        weight=WEIGHTS["head_shoulders"],
        signal="SELL",
        description="Bearish head and shoulders pattern",
        details={"points": [_point(left), _point(head), _point(right)]},
    )


def _double(points: list[SwingPoint], *, top: bool) -> PatternMatch | None:
    if len(points) < 2:
        return None
    a, b = points[-2:]
    if abs(a.price - b.price) / a.price >= DOUBLE_TOLERANCE:
        return None
    name = "double_top" if top else "double_bottom"
    return make_match(
        type=name,
        category="chart",
        index=b.index,
        time=b.time,
        strength=0.8,
        weight=WEIGHTS[name],
        signal="SELL" if top else "BUY",
        description=f"{name} pattern detected",
        details={"points": [_point(a), _point(b)]},
    )


@dataclass(frozen=True)
class _Channel:
    upper: Trendline
    lower: Trendline
    upper_slope: float  # normalised
    lower_slope: float  # normalised
    start: int
    end: int
    convergence: float
    touches: int

    def trendlines(self) -> dict[str, Any]:
        return {
            "upper": {"slope": self.upper.slope, "intercept": self.upper.intercept},
            "lower": {"slope": self.lower.slope, "intercept": self.lower.intercept},
            "start": self.start,
            "end": self.end,
        }

    def strength(self) -> float:
        return 0.55 + 0.3 * self.convergence + 0.025 * max(0, self.touches - 4)


def _converging_channel(candles: list[Candle], swings: Swings) -> _Channel | None:
    n = len(candles)
    window_start = max(0, n - 8 * swings.lookback)
    peaks = [p for p in swings.peaks if p.index >= window_start][-4:]
    troughs = [p for p in swings.troughs if p.index >= window_start][-4:]
    if len(peaks) < 2 or len(troughs) < 2:
        return None

    upper = fit_line(peaks)
    lower = fit_line(troughs)
    start = min(peaks[0].index, troughs[0].index)
    end = n - 1
    start_width = upper.at(start) - lower.at(start)
    end_width = upper.at(end) - lower.at(end)
    if start_width <= 0 or end_width <= 0 or end_width >= start_width:
        return None

    prices = [p.price for p in peaks + troughs]
    mean_price = sum(prices) / len(prices)
    return _Channel(
        upper=upper,
        lower=lower,
        upper_slope=upper.slope / mean_price,
        lower_slope=lower.slope / mean_price,
        start=start,
        end=end,
        convergence=1.0 - end_width / start_width,
        touches=len(peaks) + len(troughs),
    )


def _triangle(candles: list[Candle], ch: _Channel) -> PatternMatch | None:
    up_flat = abs(ch.upper_slope) < FLAT_SLOPE
    lo_flat = abs(ch.lower_slope) < FLAT_SLOPE
    subtype: str
    signal: Signal
    if up_flat and ch.lower_slope >= FLAT_SLOPE:
        subtype, signal = "ascending", "BUY"
    elif lo_flat and ch.upper_slope <= -FLAT_SLOPE:
        subtype, signal = "descending", "SELL"
    elif ch.upper_slope <= -FLAT_SLOPE and ch.lower_slope >= FLAT_SLOPE:
        subtype, signal = "symmetrical", "NEUTRAL"
    else:
        return None
    last = candles[-1]
    return make_match(
        type="triangle",
        category="chart",
        index=len(candles) - 1,
        time=last.time,
        strength=ch.strength(),
        weight=WEIGHTS["triangle"],
        signal=signal,
        description=f"{subtype} triangle pattern",
        details={"subtype": subtype, "trendlines": ch.trendlines(), "touches": ch.touches},
    )


def _wedge(candles: list[Candle], ch: _Channel) -> PatternMatch | None:
    subtype: str
    signal: Signal
    if ch.upper_slope >= FLAT_SLOPE and ch.lower_slope > ch.upper_slope:
        subtype, signal = "rising", "SELL"
    elif ch.lower_slope <= -FLAT_SLOPE and ch.upper_slope < ch.lower_slope:
        subtype, signal = "falling", "BUY"
    else:
        return None
    last = candles[-1]
    return make_match(
        type="wedge",
        category="chart",
        index=len(candles) - 1,
        time=last.time,
        strength=ch.strength(),
        weight=WEIGHTS["wedge"],
        signal=signal,
        description=f"{subtype} wedge pattern",
        details={"subtype": subtype, "trendlines": ch.trendlines(), "touches": ch.touches},
    )


def detect_chart_patterns(candles: list[Candle], swings: Swings) -> list[PatternMatch]:
    """Reversal and continuation patterns over the shared swing points, best first."""

    out: list[PatternMatch] = []
    hs = _head_shoulders(swings.peaks)
    if hs is not None:
        out.append(hs)

    # One double per call: a top takes precedence over a bottom.
    double = _double(swings.peaks, top=True) or _double(swings.troughs, top=False)
    if double is not None:
        out.append(double)

    ch = _converging_channel(candles, swings)
    if ch is not None:
        # A converging channel is either a triangle or a wedge, never both.
        m = _triangle(candles, ch) or _wedge(candles, ch)
        if m is not None:
            out.append(m)
    return rank(out)
