"""
Plain-text formatters for CLI reporting commands.

Each formatter returns a multi-line string for ``typer.echo()``::

    === Model League Table (30d) ===
      Rank  Model                 Accuracy   Preds  Trend  Best commodity
      ------------------------------------------------------------------
         1  Claude                   87.42      41     ^   Gold (92.10)
"""

from __future__ import annotations

from typing import Sequence

from ai_commodity_index.models.accuracy import ModelRanking
from ai_commodity_index.models.index import CompositeIndexSnapshot, FearGreedReading

_TREND_MARKERS = {1: "^", -1: "v", 0: "-"}


# ── League table ──────────────────────────────────────────────────────────────


def format_rankings_table(rankings: Sequence[ModelRanking], period: str) -> str:
    lines = ["", f"=== Model League Table ({period}) ==="]
    if not rankings:
        lines.append("  (no AI models registered)")
        return "\n".join(lines)

    header = (
        f"  {'Rank':>4}  {'Model':<20}  {'Accuracy':>8}  {'Preds':>6}  "
        f"{'Trend':>5}  Best commodity"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) + 4))
    for r in rankings:
        best = r.commodity_performance[0] if r.commodity_performance else None
        best_str = f"{best.commodity.name} ({best.accuracy:.2f})" if best else "-"
        lines.append(
            f"  {r.rank:>4}  {r.ai_model.name:<20}  {r.overall_accuracy:>8.2f}  "
            f"{r.total_predictions:>6}  {_TREND_MARKERS.get(r.trend, '-'):>5}  {best_str}"
        )
    return "\n".join(lines)


# ── Composite index ───────────────────────────────────────────────────────────


def format_index_summary(snapshot: CompositeIndexSnapshot) -> str:
    return "\n".join([
        "",
        "=== AI Commodity Composite Index ===",
        f"  Date:        {snapshot.date.isoformat()}",
        f"  ACCI:        {snapshot.overall_index}  ({snapshot.market_sentiment})",
        f"  Hard:        {snapshot.hard_commodities_index}",
        f"  Soft:        {snapshot.soft_commodities_index}",
        f"  Components:  directional={snapshot.directional_component}  "
        f"confidence={snapshot.confidence_component}  "
        f"accuracy={snapshot.accuracy_component}  "
        f"momentum={snapshot.momentum_component}",
        f"  Predictions: {snapshot.total_predictions}",
    ])


def format_index_history(snapshots: Sequence[CompositeIndexSnapshot]) -> str:
    lines = ["", "=== Index History ==="]
    if not snapshots:
        lines.append("  (no snapshots in range)")
        return "\n".join(lines)
    lines.append(f"  {'Date':<26}  {'ACCI':>6}  {'Hard':>6}  {'Soft':>6}  Sentiment")
    for s in snapshots:
        lines.append(
            f"  {s.date.isoformat():<26}  {s.overall_index:>6}  "
            f"{s.hard_commodities_index:>6}  {s.soft_commodities_index:>6}  {s.market_sentiment}"
        )
    return "\n".join(lines)


def format_fear_greed(reading: FearGreedReading) -> str:
    return (
        f"  Fear/Greed: {reading.value} ({reading.classification}) | "
        f"previous close {reading.previous_close}"
    )
