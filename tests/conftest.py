"""
Shared pytest fixtures for the psychosocial scoring test suite.

Provides:
  - ``two_category_instrument``: small 1–5 averaged instrument (HSE-IT
    thresholds) with one inverted item, for arithmetic-level tests.
  - ``summed_instrument``: 20-item 1–6 summed-total instrument (burnout
    thresholds), all items inverted; ``plain_summed_instrument`` is the same
    layout with no item inverted.
  - ``hse_it`` / ``burnout``: the shipped definitions from ``config/instruments``.
  - ``make_response``: factory for ``Response`` objects from a plain dict.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import pytest

from psychosocial_scoring.instruments.registry import InstrumentRegistry
from psychosocial_scoring.models.instrument import (
    CategoryDefinition,
    HealthImpactThresholds,
    InstrumentDefinition,
    InstrumentItem,
    RiskThresholds,
    ScoringProfile,
    ThresholdBand,
)
from psychosocial_scoring.models.recommendation import Recommendation, RecommendationCatalog
from psychosocial_scoring.models.response import RawAnswer, Response
from psychosocial_scoring.taxonomy.scoring_taxonomy import (
    AggregationMode,
    HealthImpact,
    RiskLevel,
    ThresholdComparison,
)

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"


# ── Profiles ──────────────────────────────────────────────────────────────────

def averaged_profile() -> ScoringProfile:
    """HSE-IT style profile: at_least bands on 1–5 averages."""
    return ScoringProfile(
        aggregation_mode=AggregationMode.PER_CATEGORY_NORMALIZED_AVERAGE,
        risk_thresholds=RiskThresholds(
            comparison=ThresholdComparison.AT_LEAST,
            bands=[
                ThresholdBand(bound=4.21, tier=RiskLevel.VERY_LOW),
                ThresholdBand(bound=3.41, tier=RiskLevel.LOW),
                ThresholdBand(bound=2.61, tier=RiskLevel.MODERATE),
                ThresholdBand(bound=1.81, tier=RiskLevel.HIGH),
            ],
            fallback=RiskLevel.VERY_HIGH,
        ),
        health_thresholds=HealthImpactThresholds(favorable_min=3.67, intermediate_min=2.33),
    )


def summed_profile() -> ScoringProfile:
    """Burnout style profile: at_most bands on the 20–120 symptom total."""
    return ScoringProfile(
        aggregation_mode=AggregationMode.RAW_SUMMED_TOTAL,
        risk_thresholds=RiskThresholds(
            comparison=ThresholdComparison.AT_MOST,
            bands=[
                ThresholdBand(bound=20, tier=RiskLevel.VERY_LOW),
                ThresholdBand(bound=40, tier=RiskLevel.LOW),
                ThresholdBand(bound=60, tier=RiskLevel.MODERATE),
                ThresholdBand(bound=80, tier=RiskLevel.HIGH),
            ],
            fallback=RiskLevel.VERY_HIGH,
            applies_to_category_average=False,
        ),
        health_thresholds=HealthImpactThresholds(favorable_min=4.33, intermediate_min=2.67),
        risk_labels={RiskLevel.MODERATE: "Early phase"},
    )


# ── Instruments ───────────────────────────────────────────────────────────────

@pytest.fixture
def two_category_instrument() -> InstrumentDefinition:
    """Items 1–2 in ``support`` (2 inverted), items 3–5 in ``demands`` (all inverted)."""
    return InstrumentDefinition(
        instrument_id="mini",
        display_name="Mini instrument",
        categories=[
            CategoryDefinition(category_id="support", label="Support"),
            CategoryDefinition(category_id="demands", label="Demands"),
        ],
        items=[
            InstrumentItem(item_number=1, text="I get help", category="support"),
            InstrumentItem(item_number=2, text="I am ignored", category="support", inverted=True),
            InstrumentItem(item_number=3, text="Deadlines", category="demands", inverted=True),
            InstrumentItem(item_number=4, text="Pace", category="demands", inverted=True),
            InstrumentItem(item_number=5, text="Overtime", category="demands", inverted=True),
        ],
        profile=averaged_profile(),
    )


def _summed_definition(inverted: bool) -> InstrumentDefinition:
    def category_of(n: int) -> str:
        if n <= 5:
            return "exhaustion"
        if n <= 12:
            return "distance"
        return "motivation"

    return InstrumentDefinition(
        instrument_id="summed" if inverted else "summed_plain",
        display_name="Summed instrument",
        categories=[
            CategoryDefinition(category_id="exhaustion", label="Exhaustion"),
            CategoryDefinition(category_id="distance", label="Distance"),
            CategoryDefinition(category_id="motivation", label="Motivation"),
        ],
        items=[
            InstrumentItem(
                item_number=n, text=f"Symptom {n}", category=category_of(n),
                scale_max=6, inverted=inverted,
            )
            for n in range(1, 21)
        ],
        profile=summed_profile(),
    )


@pytest.fixture
def summed_instrument() -> InstrumentDefinition:
    """20 inverted 1–6 items: 1–5 ``exhaustion``, 6–12 ``distance``, 13–20 ``motivation``."""
    return _summed_definition(inverted=True)


@pytest.fixture
def plain_summed_instrument() -> InstrumentDefinition:
    """Same layout as ``summed_instrument`` but no item is inverted."""
    return _summed_definition(inverted=False)


@pytest.fixture(scope="session")
def shipped_registry() -> InstrumentRegistry:
    return InstrumentRegistry.from_directory(CONFIG_DIR / "instruments")


@pytest.fixture
def hse_it(shipped_registry: InstrumentRegistry) -> InstrumentDefinition:
    return shipped_registry.get("hse_it")


@pytest.fixture
def burnout(shipped_registry: InstrumentRegistry) -> InstrumentDefinition:
    return shipped_registry.get("burnout")


# ── Catalog ───────────────────────────────────────────────────────────────────

@pytest.fixture
def mini_catalog() -> RecommendationCatalog:
    """Exact entries for ``support``; only a generic risk entry otherwise."""
    return RecommendationCatalog(
        instrument_id="mini",
        recommendations=[
            Recommendation(category="support", tier=HealthImpact.RISK, text="Fix support now."),
            Recommendation(
                category="support", tier=HealthImpact.INTERMEDIATE, text="Watch support.",
                actions=["Hold 1:1s"],
            ),
            Recommendation(category="*", tier=HealthImpact.RISK, text="Generic risk advice."),
        ],
        fallback_text="Fallback advice.",
    )


# ── Responses ─────────────────────────────────────────────────────────────────

def response(
    response_id: str,
    answers: dict[int, int],
    partition_key: Optional[str] = None,
) -> Response:
    """Build a ``Response`` from ``{item_number: value}``."""
    return Response(
        response_id=response_id,
        partition_key=partition_key,
        answers=[RawAnswer(item_number=n, value=v) for n, v in answers.items()],
    )


@pytest.fixture
def make_response() -> Callable[..., Response]:
    return response
