"""
Grouping / rollup: partition responses and summarize each partition.

Usage flow
----------
1. rollup(responses, instrument, by_department)
   -> dict[partition_key, AggregateReport]   (one report per department)

2. rank_categories(report.category_scores, instrument)
   -> list[CategoryScore]   (most critical first)

Partition functions
-------------------
Any ``Callable[[Response], Hashable]`` works.  Three are provided:

  by_respondent       one partition per response_id
  by_department       one partition per partition_key; ``None`` (no
                      department given) is its own partition so that
                      department counts always add up to the company count
  whole_organization  a single partition keyed ``ORGANIZATION_KEY``

Two distributions, not one
--------------------------
``risk_distribution`` counts each *individual response's own* risk level
(classified on that response's answers alone).  It is NOT the classification
of the partition's pooled average; the two answer different questions
("how many people are at high risk?" vs "is the department at high risk?")
and produce different numbers.  ``health_distribution`` counts the health
impact tier of each present *category* of the partition (the traffic-light
summary).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Hashable, Optional

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.models.response import Response
from psychosocial_scoring.scoring.aggregator import (
    CategoryScore,
    category_scores,
    overall_average,
)
from psychosocial_scoring.scoring.classifier import (
    Classification,
    classify_health_impact,
    classify_response,
)
from psychosocial_scoring.scoring.normalizer import NormalizedResponse, normalize_response
from psychosocial_scoring.taxonomy.scoring_taxonomy import (
    ELEVATED_RISK_LEVELS,
    HealthImpact,
    RiskLevel,
)

logger = logging.getLogger(__name__)

ORGANIZATION_KEY = "__organization__"

PartitionFn = Callable[[Response], Hashable]


def by_respondent(response: Response) -> str:
    return response.response_id


def by_department(response: Response) -> Optional[str]:
    return response.partition_key


def whole_organization(response: Response) -> str:
    return ORGANIZATION_KEY


@dataclass(frozen=True)
class AggregateReport:
    """Summary of one partition.

    Attributes:
        partition_key:         Key returned by the partition function.
        response_count:        Responses in the partition (classified or not).
        category_scores:       Present categories, in declaration order.
        overall_average:       Mean of present category averages; ``None`` if
                               no category is present.
        risk_distribution:     RiskLevel → number of responses whose own
                               classification is that level.  All five levels
                               are always present as keys.
        health_distribution:   HealthImpact → number of present categories
                               at that tier.
        unclassified_count:    Responses with no accepted answers.
        rejected_answer_count: Answers excluded by validation.
        overall_health_impact: Health tier of ``overall_average``.
        classifications:       (response_id, classification) for every
                               classified response, in input order; one
                               entry per response even when ids repeat.
    """

    partition_key: Hashable
    response_count: int
    category_scores: tuple[CategoryScore, ...]
    overall_average: Optional[float]
    risk_distribution: dict[RiskLevel, int]
    health_distribution: dict[HealthImpact, int]
    unclassified_count: int = 0
    rejected_answer_count: int = 0
    overall_health_impact: Optional[HealthImpact] = None
    classifications: tuple[tuple[str, Classification], ...] = ()

    def score_for(self, category: str) -> Optional[CategoryScore]:
        """The category's score, or ``None`` if absent in this partition."""
        for score in self.category_scores:
            if score.category == category:
                return score
        return None

    @property
    def classified_count(self) -> int:
        return sum(self.risk_distribution.values())

    @property
    def elevated_risk_count(self) -> int:
        """Respondents classified high or very high."""
        return sum(self.risk_distribution[lvl] for lvl in ELEVATED_RISK_LEVELS)


def summarize_partition(
    partition_key: Hashable,
    normalized: list[NormalizedResponse],
    instrument: InstrumentDefinition,
) -> AggregateReport:
    """Build the ``AggregateReport`` for one already-grouped partition."""
    scores = category_scores(normalized, instrument)
    overall = overall_average(scores)
    profile = instrument.profile

    risk_distribution: dict[RiskLevel, int] = {level: 0 for level in RiskLevel}
    classifications: list[tuple[str, Classification]] = []
    unclassified = 0
    for nr in normalized:
        classification = classify_response(nr, instrument)
        if classification is None:
            unclassified += 1
            continue
        classifications.append((nr.response_id, classification))
        risk_distribution[classification.risk_level] += 1

    health_distribution: dict[HealthImpact, int] = {impact: 0 for impact in HealthImpact}
    for score in scores:
        health_distribution[classify_health_impact(score.average, profile)] += 1

    return AggregateReport(
        partition_key=partition_key,
        response_count=len(normalized),
        category_scores=tuple(scores),
        overall_average=overall,
        risk_distribution=risk_distribution,
        health_distribution=health_distribution,
        unclassified_count=unclassified,
        rejected_answer_count=sum(len(nr.rejected) for nr in normalized),
        overall_health_impact=(
            classify_health_impact(overall, profile) if overall is not None else None
        ),
        classifications=tuple(classifications),
    )


def group_normalized(
    normalized: list[NormalizedResponse],
    partition_fn: PartitionFn,
) -> dict[Hashable, list[NormalizedResponse]]:
    """Group normalized responses by ``partition_fn(response)``.

    Keys are in order of first appearance, so the result is deterministic
    for a given input order.
    """
    groups: dict[Hashable, list[NormalizedResponse]] = {}
    for nr in normalized:
        groups.setdefault(partition_fn(nr.response), []).append(nr)
    return groups


def rollup(
    responses: list[Response] | list[NormalizedResponse],
    instrument: InstrumentDefinition,
    partition_fn: PartitionFn,
) -> dict[Hashable, AggregateReport]:
    """Partition ``responses`` and summarize every partition.

    Accepts raw ``Response`` objects (normalized here) or responses that the
    caller already normalized.  Partitions are computed independently.

    Returns:
        partition_key → ``AggregateReport``; keys in first-appearance order.
    """
    normalized = [
        r if isinstance(r, NormalizedResponse) else normalize_response(r, instrument)
        for r in responses
    ]
    reports = {
        key: summarize_partition(key, group, instrument)
        for key, group in group_normalized(normalized, partition_fn).items()
    }
    logger.debug(
        "Rolled up %d responses into %d partition(s) for '%s'.",
        len(normalized), len(reports), instrument.instrument_id,
    )
    return reports


def rank_categories(
    scores: list[CategoryScore] | tuple[CategoryScore, ...],
    instrument: InstrumentDefinition,
) -> list[CategoryScore]:
    """Most critical category first.

    Primary sort: average ascending (lower favorable-high score = worse).
    Tie-break: category declaration order in the instrument.
    """
    order = instrument.category_order
    return sorted(scores, key=lambda s: (s.average, order[s.category]))
