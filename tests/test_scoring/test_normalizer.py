"""
Tests for psychosocial_scoring/scoring/normalizer.py.

What we test
------------
normalize():
  - Non-inverted items are the identity for every in-range value.
  - Inverted 1–5 items map 1↔5, 2↔4, 3↔3.
  - Inverted 1–6 items map 1↔6 (bounds come from the item, not a constant).
  - Out-of-range values raise AnswerValidationError carrying item and value.

normalize_response():
  - Out-of-range, unknown-item, duplicate, missing and malformed answers
    become RejectedAnswers.
  - The first valid answer for an item wins.
  - Rejections never abort the rest of the response.
  - A warning is logged per rejection.

normalize_responses():
  - Preserves order.
  - Repeated response_ids are all kept, with a warning.
"""

from __future__ import annotations

import logging

import pytest

from psychosocial_scoring.models.instrument import InstrumentItem
from psychosocial_scoring.models.response import Response
from psychosocial_scoring.scoring.errors import AnswerValidationError, ScoringError
from psychosocial_scoring.scoring.normalizer import (
    normalize,
    normalize_response,
    normalize_responses,
)


def _item(inverted: bool = False, scale_max: int = 5) -> InstrumentItem:
    return InstrumentItem(
        item_number=7, text="Q", category="role", scale_max=scale_max, inverted=inverted
    )


class TestNormalize:
    @pytest.mark.parametrize("value", [1, 2, 3, 4, 5])
    def test_identity_for_non_inverted(self, value):
        assert normalize(value, _item()) == value

    @pytest.mark.parametrize("raw, expected", [(1, 5), (2, 4), (3, 3), (4, 2), (5, 1)])
    def test_inversion_five_point(self, raw, expected):
        assert normalize(raw, _item(inverted=True)) == expected

    @pytest.mark.parametrize("raw, expected", [(1, 6), (3, 4), (6, 1)])
    def test_inversion_six_point(self, raw, expected):
        assert normalize(raw, _item(inverted=True, scale_max=6)) == expected

    def test_six_is_valid_only_on_six_point_scale(self):
        assert normalize(6, _item(scale_max=6)) == 6
        with pytest.raises(AnswerValidationError):
            normalize(6, _item())

    @pytest.mark.parametrize("value", [0, -1, 7])
    def test_out_of_range_raises(self, value):
        with pytest.raises(AnswerValidationError, match="outside scale") as exc_info:
            normalize(value, _item(scale_max=6))
        assert exc_info.value.item_number == 7
        assert exc_info.value.value == value

    def test_error_hierarchy(self):
        with pytest.raises(ScoringError):
            normalize(9, _item())
        with pytest.raises(ValueError):
            normalize(9, _item())


class TestNormalizeResponse:
    def test_accepts_and_inverts(self, two_category_instrument, make_response):
        nr = normalize_response(make_response("r", {1: 5, 2: 2}), two_category_instrument)
        assert [(a.item_number, a.value) for a in nr.answers] == [(1, 5), (2, 4)]
        assert nr.rejected == ()

    def test_out_of_range_rejected_others_kept(self, two_category_instrument, make_response):
        nr = normalize_response(make_response("r", {1: 9, 3: 1}), two_category_instrument)
        assert [a.item_number for a in nr.answers] == [3]
        assert len(nr.rejected) == 1
        assert nr.rejected[0].item_number == 1
        assert nr.rejected[0].value == 9
        assert "outside scale" in nr.rejected[0].reason

    def test_unknown_item_rejected(self, two_category_instrument, make_response):
        nr = normalize_response(make_response("r", {42: 3}), two_category_instrument)
        assert nr.answers == ()
        assert "Unknown item 42" in nr.rejected[0].reason
        assert nr.has_answers is False

    def test_duplicate_first_valid_wins(self, two_category_instrument):
        from psychosocial_scoring.models.response import RawAnswer, Response

        response = Response(
            response_id="r",
            answers=[
                RawAnswer(item_number=1, value=9),   # invalid, does not claim the item
                RawAnswer(item_number=1, value=4),
                RawAnswer(item_number=1, value=2),   # duplicate
            ],
        )
        nr = normalize_response(response, two_category_instrument)
        assert [(a.item_number, a.value) for a in nr.answers] == [(1, 4)]
        assert [r.value for r in nr.rejected] == [9, 2]
        assert "Duplicate" in nr.rejected[1].reason

    def test_malformed_and_missing_values_rejected(self, two_category_instrument):
        response = Response(
            response_id="r",
            answers=[
                {"item_number": 1, "value": 4},
                {"item_number": 2, "value": "abc"},
                {"item_number": 3},
            ],
        )
        nr = normalize_response(response, two_category_instrument)
        assert [(a.item_number, a.value) for a in nr.answers] == [(1, 4)]
        assert [(r.item_number, r.value) for r in nr.rejected] == [(2, None), (3, None)]
        assert "malformed value 'abc'" in nr.rejected[0].reason
        assert "no answer" in nr.rejected[1].reason

    def test_rejection_logged(self, two_category_instrument, make_response, caplog):
        with caplog.at_level(logging.WARNING, logger="psychosocial_scoring.scoring.normalizer"):
            normalize_response(make_response("r-77", {1: 0}), two_category_instrument)
        assert "r-77" in caplog.text

    def test_carries_partition(self, two_category_instrument, make_response):
        nr = normalize_response(
            make_response("r", {1: 3}, partition_key="Finance"), two_category_instrument
        )
        assert nr.partition_key == "Finance"
        assert nr.response_id == "r"


class TestNormalizeResponses:
    def test_order_preserved(self, two_category_instrument, make_response):
        batch = [make_response(f"r{i}", {1: 3}) for i in range(5)]
        assert [n.response_id for n in normalize_responses(batch, two_category_instrument)] == [
            "r0", "r1", "r2", "r3", "r4",
        ]

    def test_repeated_response_id_warned(self, two_category_instrument, make_response, caplog):
        batch = [make_response("dup", {1: 3}), make_response("dup", {1: 4})]
        with caplog.at_level(logging.WARNING, logger="psychosocial_scoring.scoring.normalizer"):
            normalized = normalize_responses(batch, two_category_instrument)
        assert len(normalized) == 2
        assert "Duplicate response_id 'dup'" in caplog.text
