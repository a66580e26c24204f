"""
Closed vocabularies shared by every instrument.

Instrument-specific vocabularies (category ids, item numbers) are data and
live in the instrument definition files under ``config/instruments/``.
What lives here is the part every instrument must agree on so that scores
from different questionnaires can flow through one engine:

  - ``AggregationMode``     how a single response is reduced to one score.
  - ``RiskLevel``           the ordered 5-tier severity scale.
  - ``HealthImpact``        the 3-tier "traffic light" scale.
  - ``ThresholdComparison`` how a threshold table is walked.
  - ``ActionPriority``      action-plan urgency buckets.

This module has NO imports from any other ``psychosocial_scoring`` package.
"""

from enum import StrEnum


class AggregationMode(StrEnum):
    """How one response is reduced to the score fed to the risk classifier."""

    PER_CATEGORY_NORMALIZED_AVERAGE = "per_category_normalized_average"
    """Mean of the response's category averages (HSE-IT style, 1–5 scale)."""

    RAW_SUMMED_TOTAL = "raw_summed_total"
    """Symptom-frequency total over every item (burnout style, 20–120)."""


class RiskLevel(StrEnum):
    """Ordered 5-tier severity classification, least severe first."""

    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @property
    def severity(self) -> int:
        """1 (very_low) … 5 (very_high)."""
        return _RISK_SEVERITY[self]


_RISK_SEVERITY: dict[RiskLevel, int] = {
    level: rank for rank, level in enumerate(RiskLevel, start=1)
}

# Risk levels a report flags as needing intervention.
ELEVATED_RISK_LEVELS: frozenset[RiskLevel] = frozenset({RiskLevel.HIGH, RiskLevel.VERY_HIGH})


class HealthImpact(StrEnum):
    """Coarse traffic-light classification of a favorable-high score."""

    FAVORABLE = "favorable"
    INTERMEDIATE = "intermediate"
    RISK = "risk"


class ThresholdComparison(StrEnum):
    """Direction in which a threshold table is evaluated (top-down, inclusive)."""

    AT_LEAST = "at_least"
    """First band whose bound is <= score wins (higher score = less severe)."""

    AT_MOST = "at_most"
    """First band whose bound is >= score wins (higher score = more severe)."""


class ActionPriority(StrEnum):
    """Action-plan urgency, derived from a category's health impact."""

    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"


# Health impact → action-plan bucket.  Favorable categories produce no action.
HEALTH_IMPACT_PRIORITY: dict[HealthImpact, ActionPriority] = {
    HealthImpact.RISK: ActionPriority.IMMEDIATE,
    HealthImpact.INTERMEDIATE: ActionPriority.SHORT_TERM,
}
