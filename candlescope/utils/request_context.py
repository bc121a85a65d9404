from __future__ import annotations

from contextvars import ContextVar

# Request correlation for logs; set by RequestLogMiddleware.
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
