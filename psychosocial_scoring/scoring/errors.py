"""
Exception hierarchy for the scoring engine.

Two families, handled very differently by callers:

  ``AnswerValidationError``       one raw answer is unusable (out of range,
                                  unknown item, duplicate).  Non-fatal: the
                                  normalizer records it as a ``RejectedAnswer``
                                  and carries on with the rest of the data.

  ``ConfigurationMismatchError``  the caller referenced a category or an
                                  instrument that has no definition.  Always
                                  fatal; it means code and configuration
                                  disagree, not that the survey data is bad.

An empty category or partition is not an error at all; it is ``None``.
"""

from __future__ import annotations


class ScoringError(Exception):
    """Base class for every error raised by ``psychosocial_scoring``."""


class AnswerValidationError(ScoringError, ValueError):
    """A raw answer cannot be scored.

    Attributes:
        item_number: Item the answer was given for.
        value: The offending raw value.
    """

    def __init__(self, message: str, item_number: int | None = None, value: int | None = None):
        super().__init__(message)
        self.item_number = item_number
        self.value = value


class ConfigurationMismatchError(ScoringError, LookupError):
    """A category or instrument reference has no matching definition."""


class UnknownCategoryError(ConfigurationMismatchError):
    """Category id not declared by the instrument."""


class UnknownInstrumentError(ConfigurationMismatchError):
    """Instrument id not present in the registry."""
