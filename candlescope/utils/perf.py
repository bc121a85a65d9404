from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from loguru import logger

from candlescope.core.settings import settings


@contextmanager
def perf_span(op: str, **tags: Any) -> Iterator[dict[str, Any]]:
    """Time a detector step.

    Yields a dict of tags; the block may add result counts to it (e.g.
    `span["matches"] = 3`). The span is logged at WARNING when it reaches
    PERF_LOG_SLOW_MS and at DEBUG otherwise, but only if PERF_LOG_INNER_ALWAYS
    is set. A failing block is tagged with the exception type and re-raised.
    """

    span: dict[str, Any] = {k: v for k, v in tags.items() if v is not None}
    if not (settings.PERF_LOG_ENABLED and settings.PERF_LOG_INNER_ENABLED):
        yield span
        return

    t0 = time.perf_counter()
    try:
        yield span
    except Exception as e:
        span["error"] = type(e).__name__
        raise
    finally:
        dt_ms = (time.perf_counter() - t0) * 1000.0
        slow = dt_ms >= float(settings.PERF_LOG_SLOW_MS)
        if slow or settings.PERF_LOG_INNER_ALWAYS:
            detail = " ".join(f"{k}={v}" for k, v in span.items())
            logger.bind(op=op, ms=round(dt_ms, 1), **span).log(
                "WARNING" if slow else "DEBUG", "span {} {:.1f}ms {}", op, dt_ms, detail
            )
