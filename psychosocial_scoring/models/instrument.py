"""
Instrument definition models.

An ``InstrumentDefinition`` is the static schema of one questionnaire:
its categories, its items (with per-item scale bounds and inversion flag)
and a ``ScoringProfile`` that carries everything instrument-specific about
turning answers into classifications.  The engine never branches on the
instrument id; it only reads the profile.

Two threshold tables live on every profile and are never shared:

  ``risk_thresholds``    5-tier ``RiskLevel`` bands on the instrument's own
                         aggregation unit (a normalized average for HSE-IT,
                         a summed total for the burnout inventory).
  ``health_thresholds``  3-tier ``HealthImpact`` cutpoints on favorable-high
                         averages (used for category traffic lights).

Load-time invariants enforced here:
  - Item numbers are unique.
  - Every item references a declared category.
  - Every declared category has at least one item.
  - Threshold bands are strictly monotonic in their evaluation direction.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr, field_validator, model_validator

from psychosocial_scoring.scoring.errors import UnknownCategoryError
from psychosocial_scoring.taxonomy.scoring_taxonomy import (
    AggregationMode,
    HealthImpact,
    RiskLevel,
    ThresholdComparison,
)

_CATEGORY_ID_RE = re.compile(r"^[a-z][a-z0-9_]*$")


class CategoryDefinition(BaseModel):
    """One scored category (dimension) of an instrument.

    Attributes:
        category_id: Stable lowercase snake_case identifier, e.g. ``"demands"``.
        label: Human-readable label for reports.
    """

    model_config = ConfigDict(frozen=True)

    category_id: str
    label: str

    @field_validator("category_id")
    @classmethod
    def validate_category_id(cls, v: str) -> str:
        if not _CATEGORY_ID_RE.match(v):
            raise ValueError(
                f"category_id '{v}' must be lowercase snake_case."
            )
        return v


class InstrumentItem(BaseModel):
    """One question of an instrument.

    Attributes:
        item_number: Question number as printed on the form (1-based).
        text: Question wording.
        category: ``category_id`` of the category this item scores into.
        scale_min: Lowest valid answer value.
        scale_max: Highest valid answer value.
        inverted: ``True`` when a high answer is unfavorable; the normalizer
            flips such answers so every normalized value is favorable-high.
    """

    model_config = ConfigDict(frozen=True)

    item_number: int
    text: str
    category: str
    scale_min: int = 1
    scale_max: int = 5
    inverted: bool = False

    @field_validator("item_number")
    @classmethod
    def validate_item_number(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"item_number must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_scale(self) -> "InstrumentItem":
        if self.scale_min >= self.scale_max:
            raise ValueError(
                f"Item {self.item_number}: scale_min ({self.scale_min}) must be "
                f"below scale_max ({self.scale_max})."
            )
        return self


class ThresholdBand(BaseModel):
    """One row of a risk threshold table: ``bound`` → ``tier``."""

    model_config = ConfigDict(frozen=True)

    bound: float
    tier: RiskLevel


class RiskThresholds(BaseModel):
    """5-tier risk table, evaluated top-down on inclusive bounds.

    With ``AT_LEAST`` the first band whose ``bound <= score`` wins; with
    ``AT_MOST`` the first band whose ``bound >= score`` wins.  A score that
    matches no band falls through to ``fallback``.

    Attributes:
        comparison: Walk direction.
        bands: Ordered bands; bounds strictly decreasing for ``AT_LEAST``,
            strictly increasing for ``AT_MOST``.
        fallback: Tier for scores past the last band.
        applies_to_category_average: ``True`` when the bands are expressed on
            the same unit as a category average, so a single category can be
            given a risk level.  ``False`` for summed totals.
    """

    model_config = ConfigDict(frozen=True)

    comparison: ThresholdComparison
    bands: list[ThresholdBand]
    fallback: RiskLevel
    applies_to_category_average: bool = True

    @model_validator(mode="after")
    def validate_monotonic(self) -> "RiskThresholds":
        if not self.bands:
            raise ValueError("Risk threshold table must have at least one band.")
        bounds = [b.bound for b in self.bands]
        for prev, nxt in zip(bounds, bounds[1:]):
            if self.comparison == ThresholdComparison.AT_LEAST and not nxt < prev:
                raise ValueError(
                    f"at_least bands must have strictly decreasing bounds, got {bounds}."
                )
            if self.comparison == ThresholdComparison.AT_MOST and not nxt > prev:
                raise ValueError(
                    f"at_most bands must have strictly increasing bounds, got {bounds}."
                )
        return self


class HealthImpactThresholds(BaseModel):
    """3-tier traffic-light cutpoints on a favorable-high average.

    ``score >= favorable_min`` → favorable, ``score >= intermediate_min`` →
    intermediate, otherwise risk.
    """

    model_config = ConfigDict(frozen=True)

    favorable_min: float
    intermediate_min: float

    @model_validator(mode="after")
    def validate_order(self) -> "HealthImpactThresholds":
        if self.intermediate_min > self.favorable_min:
            raise ValueError(
                f"intermediate_min ({self.intermediate_min}) must not exceed "
                f"favorable_min ({self.favorable_min})."
            )
        return self


class ScoringProfile(BaseModel):
    """Everything instrument-specific about scoring, in one strategy object.

    Attributes:
        aggregation_mode: How one response becomes one risk score.
        risk_thresholds: 5-tier table on that score.
        health_thresholds: 3-tier table on favorable-high averages.
        risk_labels: Instrument wording for each ``RiskLevel``
            (e.g. burnout "Early phase" for ``MODERATE``).
        health_labels: Instrument wording for each ``HealthImpact``.
    """

    model_config = ConfigDict(frozen=True)

    aggregation_mode: AggregationMode
    risk_thresholds: RiskThresholds
    health_thresholds: HealthImpactThresholds
    risk_labels: dict[RiskLevel, str] = {}
    health_labels: dict[HealthImpact, str] = {}

    def risk_label(self, level: RiskLevel) -> str:
        return self.risk_labels.get(level, level.value.replace("_", " ").title())

    def health_label(self, impact: HealthImpact) -> str:
        return self.health_labels.get(impact, impact.value.title())


class InstrumentDefinition(BaseModel):
    """Complete, validated schema of one questionnaire.

    Attributes:
        instrument_id: Registry key, e.g. ``"hse_it"``.
        version: Definition version string; bump when items or cutpoints change.
        display_name: Human-readable instrument name.
        categories: Declared categories, in report order.  This order is the
            deterministic tie-breaker for category rankings.
        items: Declared items.  List order is the tie-breaker for question
            rankings.
        profile: Scoring strategy.
        description: Optional free text.
    """

    model_config = ConfigDict(frozen=True)

    instrument_id: str
    version: str = "1.0.0"
    display_name: str
    categories: list[CategoryDefinition]
    items: list[InstrumentItem]
    profile: ScoringProfile
    description: Optional[str] = None

    _items_by_number: dict[int, InstrumentItem] = PrivateAttr(default_factory=dict)
    _category_order: dict[str, int] = PrivateAttr(default_factory=dict)
    _item_order: dict[int, int] = PrivateAttr(default_factory=dict)

    @field_validator("instrument_id")
    @classmethod
    def validate_instrument_id(cls, v: str) -> str:
        if not _CATEGORY_ID_RE.match(v):
            raise ValueError(
                f"instrument_id '{v}' must be lowercase snake_case."
            )
        return v

    @model_validator(mode="after")
    def validate_structure(self) -> "InstrumentDefinition":
        if not self.items:
            raise ValueError(f"Instrument '{self.instrument_id}' declares no items.")

        category_ids = [c.category_id for c in self.categories]
        if len(category_ids) != len(set(category_ids)):
            raise ValueError(
                f"Instrument '{self.instrument_id}' has duplicate category ids."
            )

        seen_numbers: set[int] = set()
        declared = set(category_ids)
        used: set[str] = set()
        for item in self.items:
            if item.item_number in seen_numbers:
                raise ValueError(
                    f"Instrument '{self.instrument_id}': duplicate item_number "
                    f"{item.item_number}."
                )
            seen_numbers.add(item.item_number)
            if item.category not in declared:
                raise ValueError(
                    f"Instrument '{self.instrument_id}': item {item.item_number} "
                    f"references undeclared category '{item.category}'."
                )
            used.add(item.category)

        empty = [c for c in category_ids if c not in used]
        if empty:
            raise ValueError(
                f"Instrument '{self.instrument_id}': categories with no items: {empty}."
            )
        return self

    # ── Lookups ──────────────────────────────────────────────────────────────

    def model_post_init(self, __context: Any) -> None:
        self._items_by_number = {item.item_number: item for item in self.items}
        self._category_order = {c.category_id: i for i, c in enumerate(self.categories)}
        self._item_order = {item.item_number: i for i, item in enumerate(self.items)}

    @property
    def category_order(self) -> dict[str, int]:
        """``category_id`` → declaration index."""
        return self._category_order

    @property
    def item_order(self) -> dict[int, int]:
        """``item_number`` → declaration index."""
        return self._item_order

    @property
    def category_ids(self) -> list[str]:
        return [c.category_id for c in self.categories]

    @property
    def item_count(self) -> int:
        return len(self.items)

    def item(self, item_number: int) -> Optional[InstrumentItem]:
        """Return the item with this number, or ``None`` if not declared."""
        return self._items_by_number.get(item_number)

    def category_label(self, category_id: str) -> str:
        self.require_category(category_id)
        return self.categories[self.category_order[category_id]].label

    def require_category(self, category_id: str) -> None:
        """Raise ``UnknownCategoryError`` if ``category_id`` is not declared."""
        if category_id not in self.category_order:
            raise UnknownCategoryError(
                f"Instrument '{self.instrument_id}' has no category '{category_id}'. "
                f"Declared: {self.category_ids}"
            )

    def items_in(self, category_id: str) -> list[InstrumentItem]:
        """All items of ``category_id`` in declaration order."""
        self.require_category(category_id)
        return [item for item in self.items if item.category == category_id]
