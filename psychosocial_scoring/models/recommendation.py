"""
Recommendation catalog models.

Recommendation wording is configuration, not code: one JSON file per
instrument under ``config/recommendations/``.  The catalog is validated
against the instrument's declared categories when it is loaded (see
``recommendations.catalog.load_recommendation_catalog``) so lookups at
report time cannot miss on a typo.

Two kinds of entries:

  ``Recommendation``     keyed by (category, health impact tier); drives the
                         action plan.
  ``RiskLevelGuidance``  keyed by overall ``RiskLevel``; the conduct text and
                         actions shown for a respondent or group whose total
                         score falls in that tier (burnout inventory).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from psychosocial_scoring.taxonomy.scoring_taxonomy import HealthImpact, RiskLevel

GENERIC_CATEGORY = "*"


class Recommendation(BaseModel):
    """Advice for one category at one health impact tier.

    Attributes:
        category: ``category_id``, or ``"*"`` for the generic fallback.
        tier: Health impact tier this text applies to.
        text: Headline recommendation.
        actions: Concrete action bullet points.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    tier: HealthImpact
    text: str
    actions: list[str] = []

    @field_validator("text")
    @classmethod
    def validate_text_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Recommendation text must not be empty.")
        return v.strip()


class RiskLevelGuidance(BaseModel):
    """Conduct and actions for an overall risk tier."""

    model_config = ConfigDict(frozen=True)

    risk_level: RiskLevel
    conduct: str
    actions: list[str] = []


class RecommendationCatalog(BaseModel):
    """All recommendation content for one instrument.

    Attributes:
        instrument_id: Instrument this catalog belongs to.
        recommendations: (category, tier) entries.
        guidance: Optional per-risk-level guidance.
        fallback_text: Text used when a (category, tier) pair has no entry.
    """

    model_config = ConfigDict(frozen=True)

    instrument_id: str
    recommendations: list[Recommendation] = []
    guidance: list[RiskLevelGuidance] = []
    fallback_text: str = (
        "Review this category with the workforce and the occupational health "
        "team, and define corrective measures proportionate to the result."
    )

    @model_validator(mode="after")
    def validate_unique_keys(self) -> "RecommendationCatalog":
        seen: set[tuple[str, HealthImpact]] = set()
        for rec in self.recommendations:
            key = (rec.category, rec.tier)
            if key in seen:
                raise ValueError(
                    f"Duplicate recommendation for category '{rec.category}' "
                    f"tier '{rec.tier.value}'."
                )
            seen.add(key)
        levels = [g.risk_level for g in self.guidance]
        if len(levels) != len(set(levels)):
            raise ValueError("Duplicate risk_level in guidance entries.")
        return self

    @property
    def categories(self) -> set[str]:
        return {r.category for r in self.recommendations if r.category != GENERIC_CATEGORY}
