"""Harmonic (XABCD) pattern detection.

The last five alternating swing points are read as X, A, B, C, D and each
leg ratio is checked against the Fibonacci band of the pattern, widened by a
relative tolerance. D at a swing low completes a bullish pattern, D at a swing
high a bearish one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from candlescope.patterns.models import PatternMatch, SwingPoint, make_match, rank
from candlescope.patterns.swings import Swings, zigzag

Band = tuple[float, float]


@dataclass(frozen=True)
class HarmonicDef:
    type: str
    weight: float
    ab_xa: Band
    bc_ab: Band
    cd_bc: Band
    ad_xa: Band
    # The defining retracement/extension of D; a close hit earns a bonus.
    key_ad_xa: float


CATALOG: list[HarmonicDef] = [
    HarmonicDef("gartley", 88.0, (0.618, 0.786), (0.382, 0.886), (1.13, 1.618), (0.786, 0.786), 0.786),
    HarmonicDef("butterfly", 90.0, (0.786, 0.786), (0.382, 0.886), (1.618, 2.618), (1.27, 1.618), 1.27),
    HarmonicDef("bat", 85.0, (0.382, 0.50), (0.382, 0.886), (1.618, 2.618), (0.886, 0.886), 0.886),
]


def _in_band(actual: float, band: Band, tolerance: float) -> bool:
    lo, hi = band
    return lo * (1.0 - tolerance) <= actual <= hi * (1.0 + tolerance)


def _precision(actual: float, band: Band) -> float:
    mid = (band[0] + band[1]) / 2.0
    return max(0.0, min(1.0, 1.0 - abs(actual - mid) / mid))


def leg_ratios(points: list[SwingPoint]) -> dict[str, float] | None:
    x, a, b, c, d = points
    xa = abs(a.price - x.price)
    ab = abs(b.price - a.price)
    bc = abs(c.price - b.price)
    cd = abs(d.price - c.price)
    ad = abs(d.price - a.price)
    if xa <= 0 or ab <= 0 or bc <= 0:
        return None
    return {"AB_XA": ab / xa, "BC_AB": bc / ab, "CD_BC": cd / bc, "AD_XA": ad / xa}


def _match(p: HarmonicDef, ratios: dict[str, float], tolerance: float) -> float | None:
    bands = {"AB_XA": p.ab_xa, "BC_AB": p.bc_ab, "CD_BC": p.cd_bc, "AD_XA": p.ad_xa}
    if not all(_in_band(ratios[k], band, tolerance) for k, band in bands.items()):
        return None
    strength = 0.5 + 0.1 * sum(_precision(ratios[k], band) for k, band in bands.items())
    if abs(ratios["AD_XA"] - p.key_ad_xa) < 0.02:
        strength += 0.1
    return min(strength, 1.0)


def detect_harmonic_patterns(swings: Swings, *, tolerance: float = 0.05) -> list[PatternMatch]:
    pts = zigzag(swings.points)
    if len(pts) < 5:
        return []
    xabcd = pts[-5:]
    ratios = leg_ratios(xabcd)
    if ratios is None:
        return []

    d = xabcd[-1]
    bullish = d.kind == "low"
    points: list[dict[str, Any]] = [
        {"label": label, "index": p.index, "time": p.time, "price": p.price}
        for label, p in zip("XABCD", xabcd)
    ]
    out: list[PatternMatch] = []
    for p in CATALOG:
        strength = _match(p, ratios, float(tolerance))
        if strength is None:
            continue
        out.append(
            make_match(
                type=p.type,
                category="harmonic",
                index=d.index,
                time=d.time,
                strength=strength,
                weight=p.weight,
                signal="BUY" if bullish else "SELL",
                description=f"{'Bullish' if bullish else 'Bearish'} {p.type} harmonic pattern",
                details={"ratios": dict(ratios), "points": points},
            )
        )
    return rank(out)
