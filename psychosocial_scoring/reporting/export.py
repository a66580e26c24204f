"""
Export helpers for spreadsheets and downstream report generators.

All writers create parent directories and return the written ``Path``.
They accept generic ``list[dict]`` / ``dict`` data so they stay decoupled
from the result types.

``assessment_to_dict()`` is the single adapter from ``AssessmentResult`` to
plain JSON-able data; enum members become their string values and the
``None`` partition key becomes ``null`` in JSON.

``flatten_reports_for_export()`` turns the nested per-partition structure
into one row per (partition, category) so the CSV loads directly in Excel or
pandas without any unpivoting.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Hashable, Optional

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.scoring.classifier import classify_category
from psychosocial_scoring.scoring.engine import AssessmentResult
from psychosocial_scoring.scoring.rollup import AggregateReport

EXPORT_COLUMNS = [
    "instrument_id", "partition_key", "response_count", "overall_average",
    "category", "category_label", "average", "percentage", "sample_count",
    "health_impact", "risk_level",
]


def _round(value: Optional[float], decimals: int) -> Optional[float]:
    return None if value is None else round(value, decimals)


def _key(partition_key: Hashable) -> Optional[str]:
    return None if partition_key is None else str(partition_key)


def report_to_dict(
    report: AggregateReport,
    instrument: InstrumentDefinition,
    decimals: int = 2,
) -> dict[str, Any]:
    """Plain-dict view of one ``AggregateReport``."""
    categories = []
    for score in report.category_scores:
        c = classify_category(score, instrument)
        categories.append(
            {
                "category": score.category,
                "label": instrument.category_label(score.category),
                "average": _round(score.average, decimals),
                "percentage": _round(score.percentage, decimals),
                "sample_count": score.sample_count,
                "health_impact": c.health_impact.value,
                "risk_level": c.risk_level.value if c.risk_level else None,
            }
        )
    return {
        "partition_key": _key(report.partition_key),
        "response_count": report.response_count,
        "overall_average": _round(report.overall_average, decimals),
        "overall_health_impact": (
            report.overall_health_impact.value if report.overall_health_impact else None
        ),
        "risk_distribution": {lvl.value: n for lvl, n in report.risk_distribution.items()},
        "health_distribution": {h.value: n for h, n in report.health_distribution.items()},
        "elevated_risk_count": report.elevated_risk_count,
        "unclassified_count": report.unclassified_count,
        "rejected_answer_count": report.rejected_answer_count,
        "categories": categories,
    }


def assessment_to_dict(
    result: AssessmentResult,
    instrument: InstrumentDefinition,
    decimals: int = 2,
) -> dict[str, Any]:
    """Plain-dict view of a whole ``AssessmentResult``."""
    return {
        "instrument_id": result.instrument_id,
        "instrument_version": instrument.version,
        "response_count": result.response_count,
        "overall": (
            report_to_dict(result.overall, instrument, decimals) if result.overall else None
        ),
        "partitions": [
            report_to_dict(report, instrument, decimals) for report in result.reports.values()
        ],
        "action_plan": [
            {
                "category": item.category,
                "label": item.category_label,
                "priority": item.priority.value,
                "average": _round(item.average, decimals),
                "health_impact": item.health_impact.value,
                "recommendation": item.recommendation.text,
                "actions": list(item.recommendation.actions),
            }
            for item in result.action_plan
        ],
        "questions": [
            {
                "item_number": row.item_number,
                "text": row.text,
                "category": row.category,
                "average": _round(row.average, decimals),
                "sample_count": row.sample_count,
                "health_impact": row.health_impact.value,
                "risk_level": row.risk_level.value if row.risk_level else None,
            }
            for row in result.question_table
        ],
        "rejected": [
            {
                "response_id": r.response_id,
                "item_number": r.item_number,
                "value": r.value,
                "reason": r.reason,
            }
            for r in result.rejected
        ],
    }


def flatten_reports_for_export(
    result: AssessmentResult,
    instrument: InstrumentDefinition,
    decimals: int = 2,
) -> list[dict]:
    """One row per (partition, present category), columns ``EXPORT_COLUMNS``."""
    rows: list[dict] = []
    for report in result.reports.values():
        for score in report.category_scores:
            c = classify_category(score, instrument)
            rows.append(
                {
                    "instrument_id":   result.instrument_id,
                    "partition_key":   _key(report.partition_key) or "",
                    "response_count":  report.response_count,
                    "overall_average": _round(report.overall_average, decimals),
                    "category":        score.category,
                    "category_label":  instrument.category_label(score.category),
                    "average":         _round(score.average, decimals),
                    "percentage":      _round(score.percentage, decimals),
                    "sample_count":    score.sample_count,
                    "health_impact":   c.health_impact.value,
                    "risk_level":      c.risk_level.value if c.risk_level else "",
                }
            )
    return rows


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed UTF-8 JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str, ensure_ascii=False), encoding="utf-8")
    return path
