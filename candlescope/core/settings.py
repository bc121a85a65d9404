from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Access line per request: method, path, status, ms and the detector
    # summary (candles, matches, signals) left by the pattern endpoints.
    PERF_LOG_ENABLED: bool = True
    # Requests and detector spans at or above this duration log at WARNING.
    PERF_LOG_SLOW_MS: int = 250
    # Detector spans: one per pattern family plus one per full analysis.
    PERF_LOG_INNER_ENABLED: bool = True
    # Log every detector span at DEBUG, not only the slow ones.
    PERF_LOG_INNER_ALWAYS: bool = False

    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Swing detection: a swing high/low must be the strict extreme of
    # [i - lookback, i + lookback].
    PATTERN_SWING_LOOKBACK: int = 10
    # Candlestick matches (and volume spikes) kept per call.
    PATTERN_TOP_N: int = 10
    # Minimum series length for a full analysis (chart/harmonic families need
    # lookback room on both sides of a swing).
    PATTERN_MIN_CANDLES: int = 100
    # Upper bound on candles accepted per HTTP request.
    PATTERN_MAX_CANDLES: int = 5000

    # Signal thresholds per category (confidence, 0..100, strictly greater than).
    PATTERN_CANDLESTICK_MIN_CONFIDENCE: float = 70.0
    PATTERN_CHART_MIN_CONFIDENCE: float = 75.0
    PATTERN_HARMONIC_MIN_CONFIDENCE: float = 80.0
    PATTERN_VOLUME_MIN_CONFIDENCE: float = 75.0

    # Harmonic ratio bands are widened by this relative tolerance.
    PATTERN_HARMONIC_TOLERANCE: float = 0.05

    # Volume patterns
    PATTERN_VOLUME_WINDOW: int = Field(default=20, ge=2)
    PATTERN_VOLUME_SPIKE_Z: float = Field(default=2.5, gt=0)
    PATTERN_VOLUME_CLIMAX_RATIO: float = Field(default=3.0, gt=0)


settings = Settings()
