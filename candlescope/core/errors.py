from __future__ import annotations


class PatternError(ValueError):
    pass


class InvalidInputError(PatternError):
    """A candle violates the OHLCV invariants. Analysis is not attempted."""

    def __init__(self, index: int, reason: str) -> None:
        self.index = int(index)
        self.reason = str(reason)
        super().__init__(f"invalid candle at index {self.index}: {self.reason}")


class InsufficientDataError(PatternError):
    def __init__(self, required: int, got: int, family: str | None = None) -> None:
        self.required = int(required)
        self.got = int(got)
        self.family = family
        where = f" for {family} patterns" if family else ""
        super().__init__(f"need at least {self.required} candles{where}, got {self.got}")
