"""
Per-question table ("most critical questions").

One row per item that received at least one accepted answer, pooled across
all responses given.  Rows are sorted critical-first:

    primary   normalized average ascending (lower = less favorable)
    tie-break item declaration order in the instrument

Each row also carries the item's risk level (when the instrument's risk
table is expressed on averages) and its health impact tier, classified with
the same tables as a category average.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.scoring.aggregator import item_averages
from psychosocial_scoring.scoring.classifier import classify_health_impact, classify_risk
from psychosocial_scoring.scoring.normalizer import NormalizedResponse
from psychosocial_scoring.taxonomy.scoring_taxonomy import HealthImpact, RiskLevel


@dataclass(frozen=True)
class QuestionAggregate:
    """Pooled result of one question."""

    item_number: int
    text: str
    category: str
    average: float
    sample_count: int
    risk_level: Optional[RiskLevel]
    health_impact: HealthImpact


def build_question_table(
    normalized: list[NormalizedResponse],
    instrument: InstrumentDefinition,
    limit: Optional[int] = None,
) -> list[QuestionAggregate]:
    """Critical-first per-question rows.

    Args:
        normalized: Responses already passed through the normalizer.
        instrument: Source of item text, category and thresholds.
        limit:      Keep only the first ``limit`` rows; ``None`` keeps all.

    Returns:
        ``QuestionAggregate`` rows; unanswered items are omitted.
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}.")

    profile = instrument.profile
    rate_risk = profile.risk_thresholds.applies_to_category_average
    order = instrument.item_order

    rows: list[QuestionAggregate] = []
    for item_number, (average, count) in item_averages(normalized).items():
        item = instrument.item(item_number)
        rows.append(
            QuestionAggregate(
                item_number=item_number,
                text=item.text,
                category=item.category,
                average=average,
                sample_count=count,
                risk_level=classify_risk(average, profile) if rate_risk else None,
                health_impact=classify_health_impact(average, profile),
            )
        )

    rows.sort(key=lambda r: (r.average, order[r.item_number]))
    return rows if limit is None else rows[:limit]
