from __future__ import annotations

from dataclasses import asdict
from typing import Any

from candlescope.patterns.models import PatternAnalysis, PatternMatch


def _line(m: PatternMatch) -> str:
    return f"  {m.type}: {m.signal} ({m.confidence:.0f}%)"


def _section(title: str, matches: list[PatternMatch], limit: int | None = None) -> list[str]:
    shown = matches if limit is None else matches[:limit]
    return [f"{title} ({len(matches)}):", *(_line(m) for m in shown), ""]


def render_report(analysis: PatternAnalysis) -> str:
    """Console report for one analysis; lists are capped the same way every time."""

    p = analysis.patterns
    title = f"Pattern Analysis for {analysis.symbol or '-'} ({analysis.timeframe or '-'})"
    lines = [title, "=" * 50, ""]
    lines += _section("Candlestick Patterns", p.candlestick, 5)
    lines += _section("Chart Patterns", p.chart)
    lines += _section("Harmonic Patterns", p.harmonic)
    lines += _section("Volume Patterns", p.volume, 3)
    lines += [f"Trading Signals ({len(analysis.signals)}):"]
    lines += [f"  {s.type} [{s.category}]: {s.signal} ({s.confidence:.0f}%)" for s in analysis.signals[:5]]
    lines += ["", f"Overall Pattern Strength: {analysis.strength:.1f}%"]
    return "\n".join(lines)


def analysis_to_dict(analysis: PatternAnalysis) -> dict[str, Any]:
    return asdict(analysis)
