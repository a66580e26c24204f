"""
Assessment facade: one call from raw responses to a complete result.

    engine = ScoringEngine(instrument, catalog)
    result = engine.assess(responses, partition_fn=by_department, top_questions=15)

    result.reports         partition_key → AggregateReport
    result.overall         whole-organization AggregateReport (None if no responses)
    result.action_plan     ranked ActionItems for the organization
    result.question_table  critical-first QuestionAggregate rows
    result.rejected        every RejectedAnswer, in input order

The engine holds only the frozen instrument and catalog, so one instance can
assess any number of batches.  Responses are normalized exactly once and the
normalized list is shared by every downstream step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Hashable, Optional

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.models.recommendation import RecommendationCatalog, RiskLevelGuidance
from psychosocial_scoring.models.response import Response
from psychosocial_scoring.recommendations.selector import (
    ActionItem,
    build_action_plan,
    select_guidance,
)
from psychosocial_scoring.reporting.tables import QuestionAggregate, build_question_table
from psychosocial_scoring.scoring.normalizer import RejectedAnswer, normalize_responses
from psychosocial_scoring.scoring.rollup import (
    ORGANIZATION_KEY,
    AggregateReport,
    PartitionFn,
    by_department,
    rollup,
    summarize_partition,
)
from psychosocial_scoring.taxonomy.scoring_taxonomy import RiskLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssessmentResult:
    """Everything produced by one ``ScoringEngine.assess`` call."""

    instrument_id: str
    reports: dict[Hashable, AggregateReport]
    overall: Optional[AggregateReport]
    action_plan: list[ActionItem] = field(default_factory=list)
    question_table: list[QuestionAggregate] = field(default_factory=list)
    rejected: list[RejectedAnswer] = field(default_factory=list)

    @property
    def response_count(self) -> int:
        return self.overall.response_count if self.overall else 0


class ScoringEngine:
    """Instrument-agnostic scoring pipeline bound to one instrument."""

    def __init__(
        self,
        instrument: InstrumentDefinition,
        catalog: Optional[RecommendationCatalog] = None,
    ) -> None:
        self.instrument = instrument
        self.catalog = catalog or RecommendationCatalog(instrument_id=instrument.instrument_id)

    def assess(
        self,
        responses: list[Response],
        partition_fn: PartitionFn = by_department,
        top_questions: Optional[int] = None,
    ) -> AssessmentResult:
        """Score, classify, roll up and recommend in one pass."""
        instrument = self.instrument
        normalized = normalize_responses(responses, instrument)

        reports = rollup(normalized, instrument, partition_fn)
        overall = (
            summarize_partition(ORGANIZATION_KEY, normalized, instrument)
            if normalized else None
        )
        action_plan = (
            build_action_plan(overall.category_scores, instrument, self.catalog)
            if overall else []
        )
        question_table = build_question_table(normalized, instrument, limit=top_questions)
        rejected = [r for nr in normalized for r in nr.rejected]

        logger.info(
            "Assessed %d response(s) for '%s': %d partition(s), %d action item(s), "
            "%d rejected answer(s).",
            len(normalized), instrument.instrument_id, len(reports),
            len(action_plan), len(rejected),
        )
        return AssessmentResult(
            instrument_id=instrument.instrument_id,
            reports=reports,
            overall=overall,
            action_plan=action_plan,
            question_table=question_table,
            rejected=rejected,
        )

    def guidance_for(self, risk_level: Optional[RiskLevel]) -> Optional[RiskLevelGuidance]:
        """Catalog guidance for a risk tier; ``None`` for an unclassified subject."""
        if risk_level is None:
            return None
        return select_guidance(self.catalog, risk_level)
