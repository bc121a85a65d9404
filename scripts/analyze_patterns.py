from __future__ import annotations

import argparse
import json
from pathlib import Path

from candlescope.core.settings import settings
from candlescope.patterns.detector import analyze_patterns
from candlescope.patterns.report import analysis_to_dict, render_report
from candlescope.utils.logger import configure_logging


def _load(path: Path) -> list[dict]:
    data = json.loads(path.read_text(encoding="utf-8"))
    # Accept a bare list or {"candles": [...]}.
    if isinstance(data, dict):
        data = data.get("candles") or []
    if not isinstance(data, list):
        raise ValueError("expected a JSON list of candles")
    return data


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Detect candlestick/chart/harmonic/volume patterns in a candle file")
    p.add_argument("path", type=Path, help="JSON file: list of {time, open, high, low, close, volume}")
    p.add_argument("--symbol", default=None)
    p.add_argument("--timeframe", default=None)
    p.add_argument("--lookback", type=int, default=None)
    p.add_argument("--top-n", type=int, default=None)
    p.add_argument("--min-candles", type=int, default=None)
    p.add_argument("--json", action="store_true", help="print the analysis as JSON instead of a report")
    args = p.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)

    try:
        raw = _load(args.path)
        analysis = analyze_patterns(
            raw,
            symbol=args.symbol,
            timeframe=args.timeframe,
            lookback=args.lookback,
            top_n=args.top_n,
            min_candles=args.min_candles,
        )
    except (ValueError, OSError) as e:
        print(f"error: {e}")
        return 2

    if args.json:
        print(json.dumps(analysis_to_dict(analysis), indent=2))
    else:
        print(render_report(analysis))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
