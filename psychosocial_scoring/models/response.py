"""
Survey response models — the raw input to the scoring engine.

A ``Response`` is one respondent's submission: a partition key (usually the
department they picked on the form, nullable) and the raw answers.  Answer
values are NOT range-checked here; the valid range belongs to the instrument
item, so range checking is the normalizer's job.  Malformed values and
structural problems (two answers for the same item) are also left to the
normalizer so that one bad answer never rejects a whole submission.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class RawAnswer(BaseModel):
    """One answer as captured by the form.

    A value that is missing or not a whole number does not fail validation:
    ``value`` is left ``None`` and the original text kept in ``raw_value`` so
    the normalizer can reject that one answer with a readable reason.

    Attributes:
        item_number: Question number on the instrument.
        value: Raw Likert value selected by the respondent, or ``None`` when
            the captured value is missing or malformed.
        raw_value: The captured text when ``value`` could not be read.
    """

    model_config = ConfigDict(frozen=True)

    item_number: int
    value: Optional[int] = None
    raw_value: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def keep_malformed_value(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("value") is None:
            return data
        parsed = _as_int(data["value"])
        if parsed is None:
            return {**data, "value": None, "raw_value": str(data["value"])}
        return {**data, "value": parsed}


def _as_int(value: Any) -> Optional[int]:
    """``value`` as an int if it is a whole number (or its text), else ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class Response(BaseModel):
    """One completed questionnaire submission.

    Attributes:
        response_id: Stable identifier of the submission.
        partition_key: Grouping key captured with the response (department
            name), or ``None`` when the respondent gave none.
        submitted_at: Completion timestamp, if known.
        answers: Raw answers in capture order.
    """

    model_config = ConfigDict(frozen=True)

    response_id: str
    partition_key: Optional[str] = None
    submitted_at: Optional[datetime] = None
    answers: list[RawAnswer] = []

    @field_validator("response_id")
    @classmethod
    def validate_response_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("response_id must not be empty.")
        return v.strip()

    @field_validator("partition_key")
    @classmethod
    def blank_partition_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None
