"""
Category aggregation over any set of normalized responses.

The aggregator knows nothing about departments or companies.  It takes a
list of ``NormalizedResponse`` objects (one respondent, one department, the
whole organization: whatever the caller grouped) and pools every accepted
answer that belongs to a category.

    average    = sum(normalized values in category) / count
    percentage = (average - scale_min) / (scale_max - scale_min) * 100

A category with no accepted answers is **absent**: ``aggregate_category``
returns ``None``, and ``category_scores`` simply omits it.  Absent is never
coerced to 0, because a 0 would classify as the most severe tier.

Overall average
---------------
``overall_average`` is the mean of the *present* category averages, not the
mean of all item values.  Categories hold different item counts (HSE-IT
"demands" has 8 items, "change" has 3); pooling items would let the large
categories dominate the overall figure.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from psychosocial_scoring.models.instrument import InstrumentDefinition
from psychosocial_scoring.scoring.normalizer import NormalizedResponse


@dataclass(frozen=True)
class CategoryScore:
    """Pooled score of one category.

    Attributes:
        category:     ``category_id``.
        average:      Mean favorable-high value.
        sample_count: Number of answers pooled (always > 0).
        percentage:   ``average`` re-expressed on 0–100 over the category scale.
    """

    category: str
    average: float
    sample_count: int
    percentage: float


def aggregate_category(
    responses: Iterable[NormalizedResponse],
    category: str,
    instrument: InstrumentDefinition,
) -> Optional[CategoryScore]:
    """Pool every accepted answer of ``category`` across ``responses``.

    Returns:
        ``CategoryScore``, or ``None`` when no answer falls in the category.

    Raises:
        UnknownCategoryError: If ``category`` is not declared by ``instrument``.
    """
    items = instrument.items_in(category)
    item_numbers = {item.item_number for item in items}

    total = 0
    count = 0
    for nr in responses:
        for answer in nr.answers:
            if answer.item_number in item_numbers:
                total += answer.value
                count += 1

    if count == 0:
        return None

    average = total / count
    scale_min = min(item.scale_min for item in items)
    scale_max = max(item.scale_max for item in items)
    return CategoryScore(
        category=category,
        average=average,
        sample_count=count,
        percentage=(average - scale_min) / (scale_max - scale_min) * 100.0,
    )


def category_scores(
    responses: list[NormalizedResponse],
    instrument: InstrumentDefinition,
) -> list[CategoryScore]:
    """Scores for every declared category, in declaration order.

    Absent categories are omitted.
    """
    scores: list[CategoryScore] = []
    for category in instrument.category_ids:
        score = aggregate_category(responses, category, instrument)
        if score is not None:
            scores.append(score)
    return scores


def overall_average(scores: Iterable[CategoryScore]) -> Optional[float]:
    """Mean of the present category averages; ``None`` if there are none."""
    averages = [s.average for s in scores]
    if not averages:
        return None
    return sum(averages) / len(averages)


def item_averages(
    responses: Iterable[NormalizedResponse],
) -> dict[int, tuple[float, int]]:
    """``item_number`` → (mean normalized value, answer count).

    Items with no accepted answer are not in the result.
    """
    sums: dict[int, int] = defaultdict(int)
    counts: dict[int, int] = defaultdict(int)
    for nr in responses:
        for answer in nr.answers:
            sums[answer.item_number] += answer.value
            counts[answer.item_number] += 1
    return {num: (sums[num] / counts[num], counts[num]) for num in counts}
