from __future__ import annotations

import numpy as np

from candlescope.patterns.models import Candle, PatternMatch, Signal, is_bear, is_bull, make_match, rank

WEIGHTS: dict[str, float] = {
    "volume_spike": 70.0,
    "volume_climax": 80.0,
    "accumulation_distribution": 75.0,
}

# Minimum body move (relative to open) for a climax candle.
CLIMAX_MIN_MOVE = 0.03
# A/D flow (per-candle, relative to mean volume) needed to call a phase.
AD_MIN_FLOW = 0.1


def _color(c: Candle) -> Signal:
    if is_bull(c):
        return "BUY"
    if is_bear(c):
        return "SELL"
    return "NEUTRAL"


def _volume_spikes(candles: list[Candle], v: np.ndarray, *, window: int, spike_z: float, top_n: int | None) -> list[PatternMatch]:
    out: list[PatternMatch] = []
    for i in range(window, v.size):
        prior = v[i - window : i]
        std = float(np.std(prior))
        if std <= 1e-12:
            continue
        mean = float(np.mean(prior))
        z = (float(v[i]) - mean) / std
        if z < spike_z:
            continue
        c = candles[i]
        out.append(
            make_match(
                type="volume_spike",
                category="volume",
                index=i,
                time=c.time,
                strength=min(1.0, z / (2.0 * spike_z)),
                weight=WEIGHTS["volume_spike"],
                signal=_color(c),
                description=f"Volume spike at {z:.1f} standard deviations above the {window}-candle mean",
                details={"z_score": z, "volume_ratio": float(v[i]) / mean if mean > 0 else None},
            )
        )
    return rank(out, top_n)


def _volume_climax(candles: list[Candle], v: np.ndarray, *, window: int, scan: int, climax_ratio: float) -> PatternMatch | None:
    n = v.size
    for i in range(n - 1, max(window, n - scan) - 1, -1):
        avg = float(np.mean(v[i - window : i]))
        if avg <= 0:
            continue
        ratio = float(v[i]) / avg
        if ratio < climax_ratio:
            continue
        c = candles[i]
        move = (c.close - c.open) / c.open
        if abs(move) < CLIMAX_MIN_MOVE:
            continue
        # Exhaustion: a buying climax tops, a selling climax bottoms.
        buying = move > 0
        return make_match(
            type="volume_climax",
            category="volume",
            index=i,
            time=c.time,
            strength=0.5 + (ratio - climax_ratio) / (2.0 * climax_ratio),
            weight=WEIGHTS["volume_climax"],
            signal="SELL" if buying else "BUY",
            description=f"{'Buying' if buying else 'Selling'} volume climax at {ratio:.1f}x average volume",
            details={"volume_ratio": ratio, "move": move, "phase": "buying" if buying else "selling"},
        )
    return None


def _accumulation_distribution(candles: list[Candle], v: np.ndarray, *, span: int) -> PatternMatch | None:
    highs = np.asarray([c.high for c in candles], dtype=float)
    lows = np.asarray([c.low for c in candles], dtype=float)
    closes = np.asarray([c.close for c in candles], dtype=float)
    rng = highs - lows
    # Close location value; zero-range candles contribute nothing.
    clv = np.divide((closes - lows) - (highs - closes), rng, out=np.zeros_like(rng), where=rng > 0)
    ad = np.cumsum(clv * v)

    span = max(2, min(int(span), v.size - 1))
    mean_vol = float(np.mean(v[-span:]))
    if mean_vol <= 0:
        return None
    flow = float((ad[-1] - ad[-1 - span]) / span / mean_vol)
    if abs(flow) <= AD_MIN_FLOW:
        return None
    phase = "accumulation" if flow > 0 else "distribution"
    last = candles[-1]
    return make_match(
        type="accumulation_distribution",
        category="volume",
        index=len(candles) - 1,
        time=last.time,
        strength=0.5 + 0.5 * abs(flow),
        weight=WEIGHTS["accumulation_distribution"],
        signal="BUY" if flow > 0 else "SELL",
        description=f"{phase} phase detected",
        details={"phase": phase, "flow": flow},
    )


def detect_volume_patterns(
    candles: list[Candle],
    *,
    window: int = 20,
    scan: int = 10,
    spike_z: float = 2.5,
    climax_ratio: float = 3.0,
    top_n: int | None = 10,
) -> list[PatternMatch]:
    """Spikes, the latest climax and the A/D phase, best first."""

    if float(spike_z) <= 0 or float(climax_ratio) <= 0:
        raise ValueError(f"spike_z and climax_ratio must be positive, got {spike_z} and {climax_ratio}")
    window = max(2, int(window))
    if len(candles) <= window:
        return []
    v = np.asarray([c.volume for c in candles], dtype=float)
    if not np.any(v > 0):
        return []

    out = _volume_spikes(candles, v, window=window, spike_z=float(spike_z), top_n=top_n)
    climax = _volume_climax(candles, v, window=window, scan=max(1, int(scan)), climax_ratio=float(climax_ratio))
    if climax is not None:
        out.append(climax)
    phase = _accumulation_distribution(candles, v, span=max(2, int(scan)))
    if phase is not None:
        out.append(phase)
    return rank(out)
