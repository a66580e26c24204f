"""
Tests for psychosocial_scoring/scoring/classifier.py.

What we test
------------
classify_risk() on an at_least table (HSE-IT):
  - Every band boundary is inclusive: 4.21 → very_low, 4.2099999 → low.
  - Scores below the last band fall back to very_high.
  - No rounding: 3.4099999 is NOT low.

classify_risk() on an at_most table (burnout):
  - 20 → very_low, 21 → low, 45 → moderate, 60 → moderate, 61 → high, 81 → very_high.

classify_health_impact():
  - 3.67 → favorable, 3.6699 → intermediate, 2.33 → intermediate, 2.3299 → risk.

classify_category():
  - risk_level set for averaged instruments; None for summed-total instruments.

symptom_total() / response_risk_score():
  - Summed total equals the raw sum when all items are answered, whether
    the items are flagged inverted or not.
  - Missing items are prorated to the full item count.
  - Averaged instruments use the response's overall average.

classify_response():
  - None for a response with no accepted answers.
  - Health impact always comes from the favorable-high average.
"""

from __future__ import annotations

import pytest

from psychosocial_scoring.scoring.aggregator import CategoryScore
from psychosocial_scoring.scoring.classifier import (
    classify_category,
    classify_health_impact,
    classify_response,
    classify_risk,
    response_risk_score,
    symptom_total,
)
from psychosocial_scoring.scoring.normalizer import normalize_response
from psychosocial_scoring.taxonomy.scoring_taxonomy import HealthImpact, RiskLevel


class TestClassifyRiskAtLeast:
    @pytest.mark.parametrize("score, expected", [
        (5.0, RiskLevel.VERY_LOW),
        (4.21, RiskLevel.VERY_LOW),
        (4.2099999, RiskLevel.LOW),
        (3.41, RiskLevel.LOW),
        (3.4099999, RiskLevel.MODERATE),
        (2.61, RiskLevel.MODERATE),
        (2.6099999, RiskLevel.HIGH),
        (1.81, RiskLevel.HIGH),
        (1.8099999, RiskLevel.VERY_HIGH),
        (1.0, RiskLevel.VERY_HIGH),
    ])
    def test_bands(self, two_category_instrument, score, expected):
        assert classify_risk(score, two_category_instrument.profile) == expected

    def test_accepts_bare_table(self, two_category_instrument):
        table = two_category_instrument.profile.risk_thresholds
        assert classify_risk(4.21, table) == RiskLevel.VERY_LOW


class TestClassifyRiskAtMost:
    @pytest.mark.parametrize("total, expected", [
        (20, RiskLevel.VERY_LOW),
        (21, RiskLevel.LOW),
        (40, RiskLevel.LOW),
        (41, RiskLevel.MODERATE),
        (45, RiskLevel.MODERATE),
        (60, RiskLevel.MODERATE),
        (61, RiskLevel.HIGH),
        (80, RiskLevel.HIGH),
        (80.5, RiskLevel.VERY_HIGH),
        (120, RiskLevel.VERY_HIGH),
    ])
    def test_bands(self, summed_instrument, total, expected):
        assert classify_risk(total, summed_instrument.profile) == expected


class TestClassifyHealthImpact:
    @pytest.mark.parametrize("average, expected", [
        (5.0, HealthImpact.FAVORABLE),
        (3.67, HealthImpact.FAVORABLE),
        (3.6699999, HealthImpact.INTERMEDIATE),
        (2.33, HealthImpact.INTERMEDIATE),
        (2.3299999, HealthImpact.RISK),
        (1.0, HealthImpact.RISK),
    ])
    def test_hse_table(self, two_category_instrument, average, expected):
        assert classify_health_impact(average, two_category_instrument.profile) == expected

    def test_instrument_specific_table(self, summed_instrument):
        # 4.0 is favorable on the 1–5 table but intermediate on the 1–6 one
        assert classify_health_impact(4.0, summed_instrument.profile) == HealthImpact.INTERMEDIATE


class TestClassifyCategory:
    def test_averaged_instrument_sets_risk(self, two_category_instrument):
        c = classify_category(CategoryScore("support", 3.0, 4, 50.0), two_category_instrument)
        assert c.risk_level == RiskLevel.MODERATE
        assert c.health_impact == HealthImpact.INTERMEDIATE

    def test_summed_instrument_has_no_category_risk(self, summed_instrument):
        c = classify_category(CategoryScore("exhaustion", 2.0, 5, 20.0), summed_instrument)
        assert c.risk_level is None
        assert c.health_impact == HealthImpact.RISK


class TestResponseRiskScore:
    def test_full_total_equals_raw_sum(self, summed_instrument, make_response):
        answers = {n: (n % 6) + 1 for n in range(1, 21)}
        nr = normalize_response(make_response("r", answers), summed_instrument)
        assert symptom_total(nr, summed_instrument) == pytest.approx(sum(answers.values()))

    def test_plain_items_sum_raw_values(self, plain_summed_instrument, make_response):
        # 15 × 2 + 5 × 3 = 45 → moderate, same as the inverted layout
        answers = {n: (2 if n <= 15 else 3) for n in range(1, 21)}
        nr = normalize_response(make_response("r", answers), plain_summed_instrument)
        assert symptom_total(nr, plain_summed_instrument) == pytest.approx(45.0)
        c = classify_response(nr, plain_summed_instrument)
        assert c.risk_level == RiskLevel.MODERATE

    def test_inversion_flag_does_not_change_total(
        self, summed_instrument, plain_summed_instrument, make_response
    ):
        answers = {n: (n % 6) + 1 for n in range(1, 15)}
        totals = [
            symptom_total(normalize_response(make_response("r", answers), inst), inst)
            for inst in (summed_instrument, plain_summed_instrument)
        ]
        assert totals[0] == pytest.approx(totals[1])

    def test_missing_items_prorated(self, summed_instrument, make_response):
        # 10 of 20 items answered with 3 → raw sum 30 → prorated to 60
        nr = normalize_response(
            make_response("r", {n: 3 for n in range(1, 11)}), summed_instrument
        )
        assert symptom_total(nr, summed_instrument) == pytest.approx(60.0)

    def test_unanswered_total_is_none(self, summed_instrument, make_response):
        nr = normalize_response(make_response("r", {}), summed_instrument)
        assert symptom_total(nr, summed_instrument) is None

    def test_averaged_uses_overall_average(self, two_category_instrument, make_response):
        nr = normalize_response(make_response("r", {1: 5, 3: 5}), two_category_instrument)
        assert response_risk_score(nr, two_category_instrument) == pytest.approx(3.0)


class TestClassifyResponse:
    def test_none_without_answers(self, two_category_instrument, make_response):
        nr = normalize_response(make_response("r", {99: 1}), two_category_instrument)
        assert classify_response(nr, two_category_instrument) is None

    def test_summed_response(self, summed_instrument, make_response):
        nr = normalize_response(
            make_response("r", {n: 2 for n in range(1, 21)}), summed_instrument
        )
        c = classify_response(nr, summed_instrument)
        assert c.score == pytest.approx(40.0)
        assert c.risk_level == RiskLevel.LOW
        # favorable-high average is 7 - 2 = 5 on the 1–6 scale
        assert c.average == pytest.approx(5.0)
        assert c.health_impact == HealthImpact.FAVORABLE

    def test_averaged_response(self, two_category_instrument, make_response):
        nr = normalize_response(
            make_response("r", {1: 5, 2: 1, 3: 1, 4: 1, 5: 1}), two_category_instrument
        )
        c = classify_response(nr, two_category_instrument)
        assert c.score == pytest.approx(5.0)
        assert c.risk_level == RiskLevel.VERY_LOW
        assert c.health_impact == HealthImpact.FAVORABLE
