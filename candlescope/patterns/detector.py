from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from candlescope.core.errors import InsufficientDataError
from candlescope.core.settings import settings
from candlescope.patterns.candlestick import detect_candlestick_patterns
from candlescope.patterns.chart import detect_chart_patterns
from candlescope.patterns.harmonic import detect_harmonic_patterns
from candlescope.patterns.models import (
    Candle,
    PatternAnalysis,
    PatternDetections,
    PatternMatch,
    to_candles,
    validate_candles,
)
from candlescope.patterns.swings import Swings, find_swing_points
from candlescope.patterns.volume import detect_volume_patterns
from candlescope.utils.perf import perf_span


@dataclass(frozen=True)
class DetectOptions:
    lookback: int = 10
    top_n: int = 10
    harmonic_tolerance: float = 0.05
    volume_window: int = 20
    volume_spike_z: float = 2.5
    volume_climax_ratio: float = 3.0

    @classmethod
    def from_settings(cls, *, lookback: int | None = None, top_n: int | None = None) -> "DetectOptions":
        return cls(
            lookback=max(1, int(lookback if lookback is not None else settings.PATTERN_SWING_LOOKBACK)),
            top_n=max(0, int(top_n if top_n is not None else settings.PATTERN_TOP_N)),
            harmonic_tolerance=float(settings.PATTERN_HARMONIC_TOLERANCE),
            volume_window=max(2, int(settings.PATTERN_VOLUME_WINDOW)),
            volume_spike_z=float(settings.PATTERN_VOLUME_SPIKE_Z),
            volume_climax_ratio=float(settings.PATTERN_VOLUME_CLIMAX_RATIO),
        )


FamilyDetector = Callable[[list[Candle], Swings, DetectOptions], list[PatternMatch]]


@dataclass(frozen=True)
class PatternFamily:
    """One pattern category: how much data it needs and how it detects.

    Families are independent; adding or replacing one never touches the
    aggregation below.
    """

    name: str
    min_candles: Callable[[DetectOptions], int]
    detect: FamilyDetector

    def run(self, candles: list[Candle], swings: Swings, opts: DetectOptions) -> list[PatternMatch]:
        need = int(self.min_candles(opts))
        if len(candles) < need:
            raise InsufficientDataError(need, len(candles), family=self.name)
        return self.detect(candles, swings, opts)


FAMILIES: list[PatternFamily] = [
    PatternFamily(
        "candlestick",
        lambda o: 1,
        lambda cs, sw, o: detect_candlestick_patterns(cs, top_n=o.top_n),
    ),
    PatternFamily(
        "chart",
        lambda o: 2 * o.lookback + 1,
        lambda cs, sw, o: detect_chart_patterns(cs, sw),
    ),
    PatternFamily(
        "harmonic",
        lambda o: 2 * o.lookback + 1,
        lambda cs, sw, o: detect_harmonic_patterns(sw, tolerance=o.harmonic_tolerance),
    ),
    PatternFamily(
        "volume",
        lambda o: o.volume_window + 1,
        lambda cs, sw, o: detect_volume_patterns(
            cs,
            window=o.volume_window,
            scan=o.lookback,
            spike_z=o.volume_spike_z,
            climax_ratio=o.volume_climax_ratio,
            top_n=o.top_n,
        ),
    ),
]


def detect_patterns(
    candles: list[Any],
    *,
    lookback: int | None = None,
    top_n: int | None = None,
) -> PatternDetections:
    """Scan an ordered candle series for every pattern family.

    Raises InvalidInputError for malformed candles. A family without enough
    data contributes an empty list; an empty series yields four empty lists.
    """

    cs = to_candles(candles)
    validate_candles(cs)
    opts = DetectOptions.from_settings(lookback=lookback, top_n=top_n)
    swings = find_swing_points(cs, opts.lookback)

    found: dict[str, list[PatternMatch]] = {}
    for fam in FAMILIES:
        with perf_span(f"patterns.{fam.name}", family=fam.name, candles=len(cs)) as span:
            try:
                found[fam.name] = fam.run(cs, swings, opts)
            except InsufficientDataError as e:
                logger.bind(family=fam.name).debug("pattern family {} skipped: {}", fam.name, str(e))
                found[fam.name] = []
                span["skipped"] = True
            span["matches"] = len(found[fam.name])

    det = PatternDetections(
        candlestick=found.get("candlestick", []),
        chart=found.get("chart", []),
        harmonic=found.get("harmonic", []),
        volume=found.get("volume", []),
    )
    logger.debug(
        "patterns detected: candles={} candlestick={} chart={} harmonic={} volume={}",
        len(cs),
        len(det.candlestick),
        len(det.chart),
        len(det.harmonic),
        len(det.volume),
    )
    return det


def _thresholds() -> dict[str, float]:
    return {
        "candlestick": float(settings.PATTERN_CANDLESTICK_MIN_CONFIDENCE),
        "chart": float(settings.PATTERN_CHART_MIN_CONFIDENCE),
        "harmonic": float(settings.PATTERN_HARMONIC_MIN_CONFIDENCE),
        "volume": float(settings.PATTERN_VOLUME_MIN_CONFIDENCE),
    }


def generate_signals(
    detections: PatternDetections,
    *,
    thresholds: dict[str, float] | None = None,
) -> list[PatternMatch]:
    """Merge all categories, keep matches above their category threshold."""

    limits = {**_thresholds(), **(thresholds or {})}
    out = [m for m in detections.all() if float(m.confidence) > float(limits.get(m.category, 100.0))]
    out.sort(key=lambda m: -float(m.confidence))
    return out


def calculate_pattern_strength(detections: PatternDetections) -> float:
    matches = list(detections.all())
    if not matches:
        return 0.0
    return float(sum(float(m.confidence) for m in matches) / len(matches))


def calculate_accuracy(signals: list[PatternMatch]) -> float:
    if not signals:
        return 0.0
    return float(sum(float(s.confidence) for s in signals) / len(signals))


def analyze_patterns(
    candles: list[Any],
    *,
    symbol: str | None = None,
    timeframe: str | None = None,
    lookback: int | None = None,
    top_n: int | None = None,
    min_candles: int | None = None,
) -> PatternAnalysis:
    """Full analysis of one series: detections, signals and summary scores.

    Unlike `detect_patterns`, this entry point enforces a minimum series
    length (PATTERN_MIN_CANDLES) and raises InsufficientDataError below it.
    """

    cs = to_candles(candles)
    validate_candles(cs)
    need = int(min_candles if min_candles is not None else settings.PATTERN_MIN_CANDLES)
    if len(cs) < need:
        raise InsufficientDataError(need, len(cs))

    with perf_span("patterns.analyze", symbol=symbol, timeframe=timeframe, candles=len(cs)) as span:
        detections = detect_patterns(cs, lookback=lookback, top_n=top_n)
        signals = generate_signals(detections)
        span.update(matches=detections.count(), signals=len(signals))

    analysis = PatternAnalysis(
        symbol=symbol,
        timeframe=timeframe,
        candles=len(cs),
        price=float(cs[-1].close) if cs else None,
        patterns=detections,
        signals=signals,
        strength=calculate_pattern_strength(detections),
        accuracy=calculate_accuracy(signals),
    )
    logger.info(
        "pattern analysis {} {}: {} patterns, {} signals, strength={:.1f}",
        symbol or "-",
        timeframe or "-",
        detections.count(),
        len(signals),
        analysis.strength,
    )
    return analysis
