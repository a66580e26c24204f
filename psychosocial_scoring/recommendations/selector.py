"""
Recommendation selection and action-plan building.

Selection is a static ``(category, tier)`` lookup in the instrument's
``RecommendationCatalog``.  A miss never raises: the catalog's generic
``"*"`` entry for the tier is used, and failing that a fallback
recommendation built from ``fallback_text``.

Action plan rules
-----------------
    health impact   priority      entry?
    -------------   -----------   ------
    risk            immediate     yes
    intermediate    short_term    yes
    favorable       -             no
    (absent)        -             no

Entries follow the critical-first category ranking of
``scoring.rollup.rank_categories`` (average ascending, ties by declaration
order), so immediate items naturally come before short-term ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.models.recommendation import (
    GENERIC_CATEGORY,
    Recommendation,
    RecommendationCatalog,
    RiskLevelGuidance,
)
from psychosocial_scoring.scoring.aggregator import CategoryScore
from psychosocial_scoring.scoring.classifier import classify_health_impact
from psychosocial_scoring.scoring.rollup import rank_categories
from psychosocial_scoring.taxonomy.scoring_taxonomy import (
    HEALTH_IMPACT_PRIORITY,
    ActionPriority,
    HealthImpact,
    RiskLevel,
)


@dataclass(frozen=True)
class ActionItem:
    """One action-plan entry.

    Attributes:
        category:        ``category_id``.
        category_label:  Display label from the instrument.
        priority:        ``immediate`` or ``short_term``.
        average:         Category average that triggered the entry.
        health_impact:   Tier of that average.
        recommendation:  Selected advice.
    """

    category: str
    category_label: str
    priority: ActionPriority
    average: float
    health_impact: HealthImpact
    recommendation: Recommendation

    @property
    def description(self) -> str:
        wording = "risk" if self.health_impact == HealthImpact.RISK else "intermediate"
        return (
            f'Category "{self.category_label}" shows {wording} indicators '
            f"(average: {self.average:.1f})."
        )


def select_recommendation(
    catalog: RecommendationCatalog,
    category: str,
    tier: HealthImpact,
) -> Recommendation:
    """Look up the advice for ``(category, tier)``; never raises on a miss."""
    generic: Optional[Recommendation] = None
    for rec in catalog.recommendations:
        if rec.tier != tier:
            continue
        if rec.category == category:
            return rec
        if rec.category == GENERIC_CATEGORY:
            generic = rec
    if generic is not None:
        return Recommendation(
            category=category, tier=tier, text=generic.text, actions=list(generic.actions)
        )
    return Recommendation(category=category, tier=tier, text=catalog.fallback_text)


def select_guidance(
    catalog: RecommendationCatalog,
    risk_level: RiskLevel,
) -> Optional[RiskLevelGuidance]:
    """Conduct/actions for an overall risk tier, or ``None`` if not defined."""
    for entry in catalog.guidance:
        if entry.risk_level == risk_level:
            return entry
    return None


def build_action_plan(
    scores: list[CategoryScore] | tuple[CategoryScore, ...],
    instrument: InstrumentDefinition,
    catalog: RecommendationCatalog,
) -> list[ActionItem]:
    """Ordered action plan for a set of category scores.

    Args:
        scores:     Present category scores (absent categories are simply
                    not in the list and produce nothing).
        instrument: Provides thresholds, labels and the tie-break order.
        catalog:    Recommendation texts.

    Returns:
        Action items, most critical category first.
    """
    plan: list[ActionItem] = []
    for score in rank_categories(scores, instrument):
        impact = classify_health_impact(score.average, instrument.profile)
        priority = HEALTH_IMPACT_PRIORITY.get(impact)
        if priority is None:
            continue
        plan.append(
            ActionItem(
                category=score.category,
                category_label=instrument.category_label(score.category),
                priority=priority,
                average=score.average,
                health_impact=impact,
                recommendation=select_recommendation(catalog, score.category, impact),
            )
        )
    return plan
