"""
Answer normalization: raw Likert value → favorable-high value.

Formula
-------
    non-inverted item:  normalized = value
    inverted item:      normalized = (scale_min + scale_max) - value

For the 1-based scales used by every shipped instrument this is the familiar
``(scale_max + 1) - value``: on HSE-IT (1–5) an inverted 1 becomes 5, on the
burnout inventory (1–6) an inverted 1 becomes 6.  The bounds always come
from the item itself, never from a module constant, because instruments use
different scale sizes.

Rejection policy
----------------
``normalize()`` raises ``AnswerValidationError`` for a value outside
``[scale_min, scale_max]``.  ``normalize_response()`` catches that per answer,
records a ``RejectedAnswer``, logs a warning and keeps going; unknown item
numbers, repeated item numbers and missing or malformed values (``value`` is
``None`` on the ``RawAnswer``) are rejected the same way.  A rejected
answer is excluded from every downstream aggregate of its response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from psychosocial_scoring.models.instrument import InstrumentDefinition, InstrumentItem
from psychosocial_scoring.models.response import Response
from psychosocial_scoring.scoring.errors import AnswerValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedAnswer:
    """One accepted answer on the favorable-high scale."""

    item_number: int
    value: int


@dataclass(frozen=True)
class RejectedAnswer:
    """One answer excluded from aggregation, with the reason."""

    response_id: str
    item_number: int
    value: Optional[int]
    reason: str


@dataclass(frozen=True)
class NormalizedResponse:
    """A response after normalization.

    Attributes:
        response:  The source ``Response`` (partition key, timestamps).
        answers:   Accepted answers, in capture order.
        rejected:  Answers that failed validation.
    """

    response: Response
    answers: tuple[NormalizedAnswer, ...]
    rejected: tuple[RejectedAnswer, ...] = field(default_factory=tuple)

    @property
    def response_id(self) -> str:
        return self.response.response_id

    @property
    def partition_key(self) -> str | None:
        return self.response.partition_key

    @property
    def has_answers(self) -> bool:
        return bool(self.answers)


def normalize(value: int, item: InstrumentItem) -> int:
    """Return ``value`` on the favorable-high scale of ``item``.

    Raises:
        AnswerValidationError: If ``value`` is outside the item's scale.
    """
    if not item.scale_min <= value <= item.scale_max:
        raise AnswerValidationError(
            f"Item {item.item_number}: value {value} outside scale "
            f"[{item.scale_min}, {item.scale_max}].",
            item_number=item.item_number,
            value=value,
        )
    if item.inverted:
        return item.scale_min + item.scale_max - value
    return value


def normalize_response(
    response: Response,
    instrument: InstrumentDefinition,
) -> NormalizedResponse:
    """Normalize every answer of ``response``, rejecting the unusable ones.

    The first valid answer for an item wins; later answers for the same item are
    rejected as duplicates.

    Returns:
        ``NormalizedResponse`` with accepted and rejected answers.  Never
        raises for data problems.
    """
    accepted: list[NormalizedAnswer] = []
    rejected: list[RejectedAnswer] = []
    seen: set[int] = set()

    for raw in response.answers:
        item = instrument.item(raw.item_number)
        if item is None:
            reason = f"Unknown item {raw.item_number} for instrument '{instrument.instrument_id}'."
        elif raw.item_number in seen:
            reason = f"Duplicate answer for item {raw.item_number}."
        elif raw.value is None:
            reason = (
                f"Item {raw.item_number}: no answer given."
                if raw.raw_value is None
                else f"Item {raw.item_number}: malformed value '{raw.raw_value}'."
            )
        else:
            try:
                accepted.append(NormalizedAnswer(raw.item_number, normalize(raw.value, item)))
                seen.add(raw.item_number)
                continue
            except AnswerValidationError as exc:
                reason = str(exc)

        logger.warning(
            "Response %s: answer rejected: %s", response.response_id, reason,
            extra={"response_id": response.response_id, "item_number": raw.item_number},
        )
        rejected.append(
            RejectedAnswer(
                response_id=response.response_id,
                item_number=raw.item_number,
                value=raw.value,
                reason=reason,
            )
        )

    return NormalizedResponse(
        response=response,
        answers=tuple(accepted),
        rejected=tuple(rejected),
    )


def normalize_responses(
    responses: list[Response],
    instrument: InstrumentDefinition,
) -> list[NormalizedResponse]:
    """Normalize a batch; order is preserved.

    Responses sharing a ``response_id`` are all kept and scored, but a
    warning is logged because ``by_respondent`` would merge them.
    """
    seen_ids: set[str] = set()
    for r in responses:
        if r.response_id in seen_ids:
            logger.warning(
                "Duplicate response_id '%s' in batch for '%s'.",
                r.response_id, instrument.instrument_id,
                extra={"response_id": r.response_id},
            )
        seen_ids.add(r.response_id)

    normalized = [normalize_response(r, instrument) for r in responses]
    rejected_total = sum(len(n.rejected) for n in normalized)
    if rejected_total:
        logger.info(
            "Normalized %d responses for '%s': %d answer(s) rejected.",
            len(normalized), instrument.instrument_id, rejected_total,
        )
    return normalized
