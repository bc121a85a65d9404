import os
import sys

import pytest

# Ensure repository root is on sys.path so `import candlescope` works when running pytest.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


@pytest.fixture(autouse=True)
def _pin_settings(monkeypatch):
    """Keep tests independent of a developer's .env / environment overrides."""

    from candlescope.core.settings import settings as app_settings

    monkeypatch.setattr(app_settings, "APP_ENV", "test", raising=False)
    monkeypatch.setattr(app_settings, "PERF_LOG_ENABLED", True, raising=False)
    monkeypatch.setattr(app_settings, "PERF_LOG_INNER_ENABLED", True, raising=False)
    monkeypatch.setattr(app_settings, "PERF_LOG_INNER_ALWAYS", False, raising=False)
    monkeypatch.setattr(app_settings, "PERF_LOG_SLOW_MS", 250, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_SWING_LOOKBACK", 10, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_TOP_N", 10, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_MIN_CANDLES", 100, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_MAX_CANDLES", 5000, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_CANDLESTICK_MIN_CONFIDENCE", 70.0, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_CHART_MIN_CONFIDENCE", 75.0, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_HARMONIC_MIN_CONFIDENCE", 80.0, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_VOLUME_MIN_CONFIDENCE", 75.0, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_HARMONIC_TOLERANCE", 0.05, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_VOLUME_WINDOW", 20, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_VOLUME_SPIKE_Z", 2.5, raising=False)
    monkeypatch.setattr(app_settings, "PATTERN_VOLUME_CLIMAX_RATIO", 3.0, raising=False)
    yield
