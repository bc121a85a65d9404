from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from candlescope.patterns.models import Candle, SwingPoint


@dataclass(frozen=True)
class Swings:
    """Swing points derived once per detection call and shared by the families."""

    lookback: int
    peaks: list[SwingPoint]
    troughs: list[SwingPoint]
    points: list[SwingPoint]  # peaks + troughs ordered by index


@dataclass(frozen=True)
class Trendline:
    slope: float
    intercept: float

    def at(self, x: float) -> float:
        return float(self.slope * x + self.intercept)


def _is_extreme(values: list[float], i: int, lookback: int, *, highest: bool) -> bool:
    v = values[i]
    for j in range(i - lookback, i + lookback + 1):
        if j == i:
            continue
        if highest and values[j] >= v:
            return False
        if (not highest) and values[j] <= v:
            return False
    return True


def find_peaks(candles: list[Candle], lookback: int = 10) -> list[SwingPoint]:
    w = max(1, int(lookback))
    highs = [c.high for c in candles]
    return [
        SwingPoint(index=i, time=candles[i].time, price=highs[i], kind="high")
        for i in range(w, len(candles) - w)
        if _is_extreme(highs, i, w, highest=True)
    ]


def find_troughs(candles: list[Candle], lookback: int = 10) -> list[SwingPoint]:
    w = max(1, int(lookback))
    lows = [c.low for c in candles]
    return [
        SwingPoint(index=i, time=candles[i].time, price=lows[i], kind="low")
        for i in range(w, len(candles) - w)
        if _is_extreme(lows, i, w, highest=False)
    ]


def find_swing_points(candles: list[Candle], lookback: int = 10) -> Swings:
    peaks = find_peaks(candles, lookback)
    troughs = find_troughs(candles, lookback)
    # A wide outside bar can be both; the high sorts first.
    points = sorted(peaks + troughs, key=lambda p: (p.index, 0 if p.kind == "high" else 1))
    return Swings(lookback=max(1, int(lookback)), peaks=peaks, troughs=troughs, points=points)


def zigzag(points: list[SwingPoint]) -> list[SwingPoint]:
    """Reduce swings to a strictly alternating high/low sequence.

    Consecutive swings of the same kind collapse to the more extreme one.
    """

    out: list[SwingPoint] = []
    for p in points:
        if not out or out[-1].kind != p.kind:
            out.append(p)
            continue
        last = out[-1]
        if (p.kind == "high" and p.price > last.price) or (p.kind == "low" and p.price < last.price):
            out[-1] = p
    return out


def fit_line(points: list[SwingPoint]) -> Trendline:
    """Least-squares line through (index, price); needs two distinct indices."""

    xs = np.asarray([p.index for p in points], dtype=float)
    ys = np.asarray([p.price for p in points], dtype=float)
    if xs.size < 2 or float(np.ptp(xs)) <= 0:
        raise ValueError("need at least two points at distinct indices")
    slope, intercept = np.polyfit(xs, ys, 1)
    return Trendline(slope=float(slope), intercept=float(intercept))
