"""
Tests for psychosocial_scoring/instruments/registry.py and the shipped
instrument definitions under config/instruments/.

What we test
------------
load_instrument_definition():
  - Missing file → FileNotFoundError; malformed JSON → ValueError.
  - Invariant violations surface as pydantic.ValidationError.

InstrumentRegistry:
  - from_directory() loads every *.json; ids() is sorted.
  - get() raises UnknownInstrumentError on a miss.
  - Duplicate instrument ids are rejected.

Shipped HSE-IT definition:
  - 35 items, 7 categories, 1–5 scale.
  - Category membership and inversion flags (demands + relationships inverted).
  - Averaged aggregation with the 4.21 / 3.41 / 2.61 / 1.81 risk table
    and the 3.67 / 2.33 health table.

Shipped burnout definition:
  - 20 items on 1–6, all inverted; 5 / 7 / 8 items per category.
  - Summed-total aggregation with the 20 / 40 / 60 / 80 risk table.
  - Tier labels.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from psychosocial_scoring.instruments.registry import (
    InstrumentRegistry,
    load_instrument_definition,
)
from psychosocial_scoring.scoring.errors import UnknownInstrumentError
from psychosocial_scoring.taxonomy.scoring_taxonomy import (
    AggregationMode,
    RiskLevel,
    ThresholdComparison,
)


class TestLoadInstrumentDefinition:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_instrument_definition(tmp_path / "nope.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_instrument_definition(path)

    def test_invariant_violation(self, tmp_path, two_category_instrument):
        data = two_category_instrument.model_dump(mode="json")
        data["items"][0]["category"] = "workload"
        path = tmp_path / "mini.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        with pytest.raises(ValidationError, match="undeclared category"):
            load_instrument_definition(path)

    def test_round_trip_from_file(self, tmp_path, two_category_instrument):
        path = tmp_path / "mini.json"
        path.write_text(two_category_instrument.model_dump_json(), encoding="utf-8")
        loaded = load_instrument_definition(path)
        assert loaded.model_dump() == two_category_instrument.model_dump()
        assert loaded.item(2).inverted is True


class TestInstrumentRegistry:
    def test_shipped_ids(self, shipped_registry):
        assert shipped_registry.ids() == ["burnout", "hse_it"]
        assert "hse_it" in shipped_registry
        assert len(shipped_registry) == 2

    def test_unknown_instrument(self, shipped_registry):
        with pytest.raises(UnknownInstrumentError, match="Unknown instrument 'copsoq'"):
            shipped_registry.get("copsoq")

    def test_duplicate_ids_rejected(self, two_category_instrument):
        with pytest.raises(ValueError, match="Duplicate instrument_id"):
            InstrumentRegistry([two_category_instrument, two_category_instrument])

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InstrumentRegistry.from_directory(tmp_path / "missing")

    def test_empty_directory(self, tmp_path):
        assert InstrumentRegistry.from_directory(tmp_path).ids() == []


class TestShippedHseIt:
    def test_shape(self, hse_it):
        assert hse_it.item_count == 35
        assert hse_it.category_ids == [
            "demands", "control", "manager_support", "peer_support",
            "relationships", "role", "change",
        ]
        assert all((i.scale_min, i.scale_max) == (1, 5) for i in hse_it.items)

    @pytest.mark.parametrize("category, numbers", [
        ("role", [1, 4, 11, 13, 17]),
        ("control", [2, 10, 15, 19, 25, 30]),
        ("demands", [3, 6, 9, 12, 16, 18, 20, 22]),
        ("relationships", [5, 14, 21, 34]),
        ("peer_support", [7, 24, 27, 31]),
        ("manager_support", [8, 23, 29, 33, 35]),
        ("change", [26, 28, 32]),
    ])
    def test_category_membership(self, hse_it, category, numbers):
        assert [i.item_number for i in hse_it.items_in(category)] == numbers

    def test_inverted_items(self, hse_it):
        inverted = {i.item_number for i in hse_it.items if i.inverted}
        assert inverted == {3, 6, 9, 12, 16, 18, 20, 22, 5, 14, 21, 34}

    def test_profile(self, hse_it):
        profile = hse_it.profile
        assert profile.aggregation_mode == AggregationMode.PER_CATEGORY_NORMALIZED_AVERAGE
        assert profile.risk_thresholds.comparison == ThresholdComparison.AT_LEAST
        assert [b.bound for b in profile.risk_thresholds.bands] == [4.21, 3.41, 2.61, 1.81]
        assert profile.risk_thresholds.fallback == RiskLevel.VERY_HIGH
        assert profile.health_thresholds.favorable_min == 3.67
        assert profile.health_thresholds.intermediate_min == 2.33


class TestShippedBurnout:
    def test_shape(self, burnout):
        assert burnout.item_count == 20
        assert all((i.scale_min, i.scale_max) == (1, 6) for i in burnout.items)
        assert all(i.inverted for i in burnout.items)

    def test_category_sizes(self, burnout):
        sizes = {c: len(burnout.items_in(c)) for c in burnout.category_ids}
        assert sizes == {"exhaustion": 5, "depersonalization": 7, "demotivation": 8}

    def test_profile(self, burnout):
        profile = burnout.profile
        assert profile.aggregation_mode == AggregationMode.RAW_SUMMED_TOTAL
        assert profile.risk_thresholds.comparison == ThresholdComparison.AT_MOST
        assert [b.bound for b in profile.risk_thresholds.bands] == [20, 40, 60, 80]
        assert profile.risk_thresholds.applies_to_category_average is False

    def test_tier_labels(self, burnout):
        labels = [burnout.profile.risk_label(lvl) for lvl in RiskLevel]
        assert labels == [
            "No indication", "Risk of developing", "Early phase",
            "Established condition", "Advanced stage",
        ]
