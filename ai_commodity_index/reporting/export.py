"""
Export helpers for spreadsheet analysis.

Writers take generic ``list[dict]`` rows and return the written ``Path``.
CSV output is flat so it opens directly in Excel or a BI tool.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Sequence

from ai_commodity_index.models.accuracy import ModelRanking
from ai_commodity_index.models.index import CompositeIndexSnapshot
from ai_commodity_index.utils.numeric import format_decimal

RANKING_COLUMNS = [
    "rank", "trend", "ai_model", "provider", "overall_accuracy",
    "total_predictions", "avg_absolute_error", "avg_percentage_error",
    "best_commodity", "best_commodity_accuracy",
]


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file (header only if ``fieldnames``
    is given and there are no records; empty file otherwise)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    cols = fieldnames or (list(records[0].keys()) if records else [])
    if not cols:
        path.write_text("", encoding="utf-8")
        return path
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` as indented JSON; datetimes are serialised with ``str``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def rankings_to_rows(rankings: Sequence[ModelRanking]) -> list[dict]:
    """One flat row per model, in league-table order."""
    rows: list[dict] = []
    for r in rankings:
        best = r.commodity_performance[0] if r.commodity_performance else None
        rows.append({
            "rank": r.rank,
            "trend": r.trend,
            "ai_model": r.ai_model.name,
            "provider": r.ai_model.provider,
            "overall_accuracy": format_decimal(r.overall_accuracy),
            "total_predictions": r.total_predictions,
            "avg_absolute_error": format_decimal(r.avg_absolute_error, 4),
            "avg_percentage_error": format_decimal(r.avg_percentage_error, 4),
            "best_commodity": best.commodity.name if best else "",
            "best_commodity_accuracy": format_decimal(best.accuracy) if best else "",
        })
    return rows


def snapshots_to_rows(snapshots: Sequence[CompositeIndexSnapshot]) -> list[dict]:
    return [s.model_dump(mode="json") for s in snapshots]
