"""
Risk classification: score → ``RiskLevel`` and → ``HealthImpact``.

Both classifiers read their cutpoints from the instrument's
``ScoringProfile``; nothing here is specific to HSE-IT or to the burnout
inventory.  Tables are walked top-down and bounds are inclusive, compared
exactly (no rounding, no epsilon):

    HSE-IT risk (at_least, category/overall averages on 1–5):
        >= 4.21 very_low | >= 3.41 low | >= 2.61 moderate | >= 1.81 high | very_high

    Burnout risk (at_most, symptom total on 20–120):
        <= 20 very_low | <= 40 low | <= 60 moderate | <= 80 high | very_high

    HSE-IT health impact (favorable-high averages):
        >= 3.67 favorable | >= 2.33 intermediate | risk

Response risk score
-------------------
What gets fed to the risk table for one response depends on the profile's
aggregation mode:

    per_category_normalized_average
        the response's overall average (mean of its category averages).

    raw_summed_total
        the sum of the *raw* answer values.  Normalization is undone per
        item (an inverted item contributes scale_min + scale_max - normalized,
        a plain item its normalized value as is), so the total is the same
        whichever way an instrument flags its items.  When items are
        missing, the total is prorated to the full item count (person-mean
        imputation) so that a skipped question does not read as "no
        symptom".

The health impact of a response is always taken from its overall
favorable-high average, whatever the aggregation mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from psychosocial_scoring.models.instrument import (
    HealthImpactThresholds,
    InstrumentDefinition,
    InstrumentItem,
    RiskThresholds,
    ScoringProfile,
)
from psychosocial_scoring.scoring.aggregator import (
    CategoryScore,
    category_scores,
    overall_average,
)
from psychosocial_scoring.scoring.normalizer import NormalizedResponse
from psychosocial_scoring.taxonomy.scoring_taxonomy import (
    AggregationMode,
    HealthImpact,
    RiskLevel,
    ThresholdComparison,
)


@dataclass(frozen=True)
class Classification:
    """Both classifications of one score.

    Attributes:
        risk_level:    5-tier level, or ``None`` when the instrument's risk
                       table does not apply to this kind of score.
        health_impact: 3-tier traffic light.
        score:         The value fed to the risk table.
        average:       The favorable-high average fed to the health table.
    """

    risk_level: Optional[RiskLevel]
    health_impact: HealthImpact
    score: float
    average: float


def classify_risk(score: float, profile: ScoringProfile | RiskThresholds) -> RiskLevel:
    """Map ``score`` to a ``RiskLevel`` using the profile's risk table."""
    table = profile.risk_thresholds if isinstance(profile, ScoringProfile) else profile
    for band in table.bands:
        if table.comparison == ThresholdComparison.AT_LEAST:
            if score >= band.bound:
                return band.tier
        elif score <= band.bound:
            return band.tier
    return table.fallback


def classify_health_impact(
    average: float,
    profile: ScoringProfile | HealthImpactThresholds,
) -> HealthImpact:
    """Map a favorable-high ``average`` to a ``HealthImpact`` tier."""
    table = profile.health_thresholds if isinstance(profile, ScoringProfile) else profile
    if average >= table.favorable_min:
        return HealthImpact.FAVORABLE
    if average >= table.intermediate_min:
        return HealthImpact.INTERMEDIATE
    return HealthImpact.RISK


def classify_category(score: CategoryScore, instrument: InstrumentDefinition) -> Classification:
    """Classify one category score.

    ``risk_level`` is only set when the instrument's risk table is expressed
    on category averages; a summed-total table says nothing about a single
    category.
    """
    profile = instrument.profile
    risk_level = (
        classify_risk(score.average, profile)
        if profile.risk_thresholds.applies_to_category_average
        else None
    )
    return Classification(
        risk_level=risk_level,
        health_impact=classify_health_impact(score.average, profile),
        score=score.average,
        average=score.average,
    )


def raw_value(normalized: int, item: InstrumentItem) -> int:
    """The value the respondent actually picked, before normalization."""
    if item.inverted:
        return item.scale_min + item.scale_max - normalized
    return normalized


def symptom_total(nr: NormalizedResponse, instrument: InstrumentDefinition) -> Optional[float]:
    """Prorated raw-value total of one response; ``None`` if unanswered."""
    if not nr.answers:
        return None
    total = 0
    for answer in nr.answers:
        total += raw_value(answer.value, instrument.item(answer.item_number))
    answered = len(nr.answers)
    if answered == instrument.item_count:
        return float(total)
    return total * instrument.item_count / answered


def response_risk_score(
    nr: NormalizedResponse,
    instrument: InstrumentDefinition,
    scores: Optional[list[CategoryScore]] = None,
) -> Optional[float]:
    """The value fed to the risk table for one response (see module docstring)."""
    if instrument.profile.aggregation_mode == AggregationMode.RAW_SUMMED_TOTAL:
        return symptom_total(nr, instrument)
    if scores is None:
        scores = category_scores([nr], instrument)
    return overall_average(scores)


def classify_response(
    nr: NormalizedResponse,
    instrument: InstrumentDefinition,
) -> Optional[Classification]:
    """Classify one response on its own answers.

    Returns:
        ``Classification``, or ``None`` when the response has no accepted
        answers (it cannot be classified, and must not count as any tier).
    """
    scores = category_scores([nr], instrument)
    average = overall_average(scores)
    if average is None:
        return None
    score = response_risk_score(nr, instrument, scores)
    profile = instrument.profile
    return Classification(
        risk_level=classify_risk(score, profile),
        health_impact=classify_health_impact(average, profile),
        score=score,
        average=average,
    )
