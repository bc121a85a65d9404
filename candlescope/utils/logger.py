from __future__ import annotations

import sys

from loguru import logger

from candlescope.core.settings import settings
from candlescope.utils.request_context import request_id_var

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <7}</level> | "
    "rid={extra[rid]} | <cyan>{name}</cyan> - <level>{message}</level>"
)


def _attach_request_id(record) -> None:
    # Records logged outside a request get "-".
    record["extra"].setdefault("rid", request_id_var.get() or "-")


def configure_logging(level: str = "INFO") -> None:
    """Route loguru to stderr, tagging every record with the current request id.

    LOG_JSON switches the sink to one JSON object per line; `extra` then holds
    rid plus whatever the caller bound (family, candles, matches, ...).
    """

    logger.remove()
    logger.configure(patcher=_attach_request_id)
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=_FORMAT,
        backtrace=False,
        diagnose=False,
        serialize=bool(settings.LOG_JSON),
    )
