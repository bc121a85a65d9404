from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from candlescope.core.settings import settings
from candlescope.utils.request_context import request_id_var

# Keys a pattern endpoint may leave in request.state.pattern_stats.
STAT_KEYS = ("symbol", "timeframe", "candles", "matches", "signals")


def record_pattern_stats(request: Request, **stats: Any) -> None:
    """Merge detector counts into the request so the access line can carry them."""

    current = dict(getattr(request.state, "pattern_stats", None) or {})
    current.update({k: v for k, v in stats.items() if k in STAT_KEYS and v is not None})
    request.state.pattern_stats = current


def _summary(stats: dict[str, Any]) -> str:
    return " ".join(f"{k}={stats[k]}" for k in STAT_KEYS if k in stats)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs one access line when it finishes.

    The id comes from `x-request-id` when the caller sends one and is echoed
    back; log records emitted while the request runs carry it as `extra.rid`.
    """

    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get("x-request-id") or uuid4().hex
        request.state.request_id = req_id
        token = request_id_var.set(req_id)
        t0 = time.perf_counter()
        status_code = 500
        try:
            resp = await call_next(request)
            status_code = resp.status_code
            resp.headers["x-request-id"] = req_id
            return resp
        finally:
            if settings.PERF_LOG_ENABLED:
                dt_ms = (time.perf_counter() - t0) * 1000.0
                stats = dict(getattr(request.state, "pattern_stats", None) or {})
                lvl = "WARNING" if dt_ms >= float(settings.PERF_LOG_SLOW_MS) else "INFO"
                logger.bind(status=status_code, ms=round(dt_ms, 1), **stats).log(
                    lvl,
                    "{} {} -> {} ({:.1f}ms) {}",
                    request.method,
                    request.url.path,
                    status_code,
                    dt_ms,
                    _summary(stats),
                )
            request_id_var.reset(token)
