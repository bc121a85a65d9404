from __future__ import annotations

import pytest

from candle_factory import mk
from candlescope.patterns.candlestick import detect_candlestick_patterns
from candlescope.patterns.detector import calculate_pattern_strength, detect_patterns, generate_signals
from candlescope.patterns.models import to_candles


def _downtrend(n: int = 10) -> list[dict]:
    raw = []
    for i in range(n):
        p = 110.0 - i
        raw.append(mk(i, p + 0.5, p + 1.0, p - 1.0, p - 0.5))
    return raw


def _uptrend(n: int = 10) -> list[dict]:
    raw = []
    for i in range(n):
        p = 100.0 + i
        raw.append(mk(i, p - 0.5, p + 1.0, p - 1.0, p + 0.5))
    return raw


def _by_type(matches, name):
    return [m for m in matches if m.type == name]


def test_flat_zero_range_candles_produce_nothing():
    raw = [mk(i, 100.0, 100.0, 100.0, 100.0) for i in range(30)]
    assert detect_candlestick_patterns(to_candles(raw)) == []

    det = detect_patterns(raw)
    assert det.count() == 0


def test_detect_hammer_in_downtrend():
    raw = _downtrend()
    # Tiny body at the top, lower shadow 95% of the range, new low.
    raw.append(mk(10, 99.5, 100.0, 90.0, 100.0))

    matches = detect_candlestick_patterns(to_candles(raw))
    hammers = _by_type(matches, "hammer")

    assert len(hammers) == 1
    m = hammers[0]
    assert m.index == 10
    assert m.signal == "BUY"
    assert m.strength == pytest.approx(0.96)
    assert m.confidence == pytest.approx(72.0)
    assert m.confidence > 70


def test_textbook_hammer_is_detected_but_below_signal_threshold():
    raw = _downtrend()
    # Lower shadow exactly three bodies, no upper shadow.
    raw.append(mk(10, 99.0, 100.0, 96.0, 100.0))

    det = detect_patterns(raw)
    hammers = _by_type(det.candlestick, "hammer")
    assert len(hammers) == 1
    assert hammers[0].confidence == pytest.approx(60.0)

    assert _by_type(generate_signals(det), "hammer") == []


def test_upper_shadow_longer_than_half_body_is_not_a_hammer():
    raw = [mk(0, 100.0, 105.0, 95.0, 96.0), mk(1, 95.0, 96.0, 80.0, 94.0)]
    matches = detect_candlestick_patterns(to_candles(raw))

    assert _by_type(matches, "hammer") == []
    dojis = _by_type(matches, "doji")
    assert len(dojis) == 1
    assert dojis[0].index == 1
    assert dojis[0].strength == pytest.approx(0.375)
    assert dojis[0].confidence == pytest.approx(22.5)


def test_hammer_upper_shadow_boundary_is_inclusive():
    raw = [mk(0, 100.0, 105.0, 95.0, 96.0), mk(1, 95.0, 95.5, 80.0, 94.0)]
    matches = detect_candlestick_patterns(to_candles(raw))

    hammers = _by_type(matches, "hammer")
    assert len(hammers) == 1
    assert hammers[0].strength == pytest.approx(0.8 * 14.0 / 15.5 + 0.2)


def test_hammer_requires_new_low():
    raw = [mk(0, 100.0, 101.0, 80.0, 100.5), mk(1, 99.5, 100.0, 90.0, 100.0)]
    assert _by_type(detect_candlestick_patterns(to_candles(raw)), "hammer") == []


def test_detect_shooting_star_in_uptrend():
    raw = _uptrend()
    raw.append(mk(10, 110.5, 120.0, 110.0, 110.0))

    matches = detect_candlestick_patterns(to_candles(raw))
    stars = _by_type(matches, "shooting_star")

    assert len(stars) == 1
    assert stars[0].signal == "SELL"
    assert stars[0].confidence == pytest.approx(72.0)


def test_detect_bullish_engulfing():
    raw = [mk(0, 100.0, 100.5, 97.5, 98.0), mk(1, 97.5, 101.5, 97.0, 101.0)]
    matches = detect_candlestick_patterns(to_candles(raw))

    eng = _by_type(matches, "engulfing")
    assert len(eng) == 1
    assert eng[0].signal == "BUY"
    assert eng[0].strength == pytest.approx(0.875)
    assert eng[0].confidence == pytest.approx(70.0)


def test_detect_bearish_engulfing():
    raw = [mk(0, 100.0, 102.5, 99.5, 102.0), mk(1, 102.5, 103.0, 98.5, 99.0)]
    matches = detect_candlestick_patterns(to_candles(raw))

    eng = _by_type(matches, "engulfing")
    assert len(eng) == 1
    assert eng[0].signal == "SELL"
    assert eng[0].confidence == pytest.approx(70.0)


def test_engulfing_strength_caps_at_double_body():
    raw = [mk(0, 100.0, 100.5, 98.5, 99.0), mk(1, 98.5, 104.0, 98.0, 103.5)]
    eng = _by_type(detect_candlestick_patterns(to_candles(raw)), "engulfing")
    assert eng[0].strength == pytest.approx(1.0)
    assert eng[0].confidence == pytest.approx(80.0)


def test_touching_bodies_do_not_engulf():
    # Second open equals the first close, so the reversal is not strict.
    raw = [mk(0, 100.0, 100.5, 97.5, 98.0), mk(1, 98.0, 101.5, 97.5, 101.0)]
    assert _by_type(detect_candlestick_patterns(to_candles(raw)), "engulfing") == []


def test_detect_morning_star():
    raw = [
        mk(0, 110.0, 111.0, 99.0, 100.0),
        mk(1, 98.0, 98.5, 97.0, 97.5),
        mk(2, 98.0, 107.0, 97.5, 106.0),
    ]
    stars = _by_type(detect_candlestick_patterns(to_candles(raw)), "morning_star")

    assert len(stars) == 1
    assert stars[0].index == 2
    assert stars[0].signal == "BUY"
    assert stars[0].confidence == pytest.approx(68.0)


def test_detect_evening_star():
    raw = [
        mk(0, 100.0, 111.0, 99.0, 110.0),
        mk(1, 112.0, 113.0, 111.5, 112.5),
        mk(2, 112.0, 112.5, 103.5, 104.0),
    ]
    stars = _by_type(detect_candlestick_patterns(to_candles(raw)), "evening_star")

    assert len(stars) == 1
    assert stars[0].signal == "SELL"


def test_doji_at_ten_percent_body_ratio_scores_zero():
    raw = [mk(0, 100.0, 105.0, 95.0, 101.0)]
    dojis = _by_type(detect_candlestick_patterns(to_candles(raw)), "doji")

    assert len(dojis) == 1
    assert dojis[0].strength == 0.0
    assert dojis[0].confidence == 0.0


def test_zero_strength_doji_counts_toward_pattern_strength():
    raw = [mk(0, 100.0, 105.0, 95.0, 101.0), mk(1, 100.0, 101.0, 99.0, 100.0)]
    det = detect_patterns(raw)

    assert [m.type for m in det.candlestick] == ["doji", "doji"]
    assert calculate_pattern_strength(det) == pytest.approx(30.0)


def test_body_ratio_above_ten_percent_is_not_a_doji():
    raw = [mk(0, 100.0, 105.0, 95.0, 101.1)]
    assert _by_type(detect_candlestick_patterns(to_candles(raw)), "doji") == []


def test_results_are_ranked_and_truncated():
    raw = [mk(i, 100.0, 101.0, 99.0, 100.0) for i in range(30)]
    matches = detect_candlestick_patterns(to_candles(raw), top_n=10)

    assert len(matches) == 10
    assert all(m.type == "doji" for m in matches)
    assert [m.index for m in matches] == list(range(10))
    confs = [m.confidence for m in matches]
    assert confs == sorted(confs, reverse=True)
