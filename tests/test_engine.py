"""Tests for normalization, ranking and field edits."""

import math

import pytest

from unitprice.engine import apply_edit, evaluate, normalize, sanitize_price
from unitprice.models import Item, OutcomeStatus
from unitprice.units import Dimension, UnknownDimension, UnknownUnit


def _item(item_id, price, amount, unit="ml", unit_type="volume", name=None):
    return Item(
        id=item_id,
        name=name if name is not None else f"Item {item_id}",
        price=price,
        amount=amount,
        unit=unit,
        unit_type=unit_type,
    )


class TestNormalize:
    def test_converts_to_base_unit(self):
        assert normalize("1", "L", "volume") == 1000.0
        assert normalize("2", "kg", Dimension.WEIGHT) == 2000.0
        assert normalize("1", "dozen", "count") == 12.0

    def test_unparseable_amount_is_zero(self):
        assert normalize("abc", "ml", "volume") == 0
        assert normalize("", "ml", "volume") == 0
        assert normalize("nan", "ml", "volume") == 0

    @pytest.mark.parametrize("amount", [0.5, 1, 3.25, 750])
    @pytest.mark.parametrize("dim,unit", [("volume", "fl oz"), ("weight", "lb"), ("count", "dozen")])
    def test_linear(self, amount, dim, unit):
        single = normalize(str(amount), unit, dim)
        double = normalize(str(2 * amount), unit, dim)
        assert double == pytest.approx(2 * single)

    def test_unknown_unit_raises(self):
        with pytest.raises(UnknownUnit):
            normalize("1", "kg", "volume")


class TestEvaluate:
    def test_milk_scenario(self, milk_items):
        result = evaluate(milk_items)

        assert [r.name for r in result.results] == ["Milk A", "Milk B"]
        a, b = result.results
        assert a.price_per_base_unit == pytest.approx(0.003)
        assert b.price_per_base_unit == pytest.approx(0.005)
        assert result.best_value.id == 1
        assert a.percentage_diff == 0
        assert b.percentage_diff == 66.67

    def test_empty_input(self):
        result = evaluate([])
        assert result.results == []
        assert result.best_value is None
        assert result.outcomes == []

    def test_incomplete_items_skipped(self):
        items = [_item(1, "", "100"), _item(2, "2.00", ""), _item(3, "1.00", "100")]
        result = evaluate(items)

        assert [r.id for r in result.results] == [3]
        statuses = [o.status for o in result.outcomes]
        assert statuses == [
            OutcomeStatus.EXCLUDED_INCOMPLETE,
            OutcomeStatus.EXCLUDED_INCOMPLETE,
            OutcomeStatus.INCLUDED,
        ]

    def test_no_survivors(self):
        result = evaluate([_item(1, "", ""), _item(2, "1.00", "abc")])
        assert result.results == []
        assert result.best_value is None
        assert len(result.outcomes) == 2

    def test_abc_amount_excluded_without_error(self):
        result = evaluate([_item(1, "2.00", "abc"), _item(2, "1.00", "10")])

        assert [r.id for r in result.results] == [2]
        assert result.outcomes[0].status is OutcomeStatus.EXCLUDED_INVALID
        assert "amount" in result.outcomes[0].reason

    def test_zero_and_negative_amounts_invalid(self):
        result = evaluate([_item(1, "2.00", "0"), _item(2, "2.00", "-5")])
        assert result.results == []
        assert all(o.status is OutcomeStatus.EXCLUDED_INVALID for o in result.outcomes)

    def test_bad_price_invalid(self):
        result = evaluate([_item(1, ".", "10"), _item(2, "-1", "10")])
        assert result.results == []
        assert all("price" in o.reason for o in result.outcomes)

    def test_mixed_units_ranked_on_base(self):
        items = [
            _item(1, "10.00", "1", unit="kg", unit_type="weight"),
            _item(2, "5.00", "1", unit="lb", unit_type="weight"),
            _item(3, "1.50", "100", unit="g", unit_type="weight"),
        ]
        result = evaluate(items)

        assert result.best_value.id == 1
        assert result.results[0].price_per_base_unit == pytest.approx(0.01)

    def test_exactly_one_zero_diff_at_minimum(self):
        items = [_item(1, "7.00", "3"), _item(2, "2.00", "1"), _item(3, "9.99", "4")]
        result = evaluate(items)

        zeros = [r for r in result.results if r.percentage_diff == 0]
        assert len(zeros) == 1
        assert zeros[0].price_per_base_unit == min(r.price_per_base_unit for r in result.results)
        assert all(r.percentage_diff >= 0 for r in result.results)

    def test_tie_goes_to_first_item(self):
        items = [_item(1, "4.00", "2"), _item(2, "2.00", "1"), _item(3, "1.00", "1")]
        result = evaluate(items[:2])

        assert result.best_value.id == 1
        assert [r.percentage_diff for r in result.results] == [0, 0]

        result = evaluate(list(reversed(items)))
        assert result.best_value.id == 3

    def test_free_item_is_best(self):
        result = evaluate([_item(1, "3.00", "1"), _item(2, "0", "1")])

        assert result.best_value.id == 2
        assert math.isinf(result.results[0].percentage_diff)
        assert result.results[1].percentage_diff == 0

    def test_outcomes_carry_ranked_items(self, milk_items):
        result = evaluate(milk_items)

        assert [o.ranked for o in result.outcomes] == result.results
        assert result.is_best(result.outcomes[0].ranked)
        assert not result.is_best(result.outcomes[1].ranked)

    def test_does_not_alias_input(self, milk_items):
        result = evaluate(milk_items)
        milk_items[0].name = "changed"
        assert result.results[0].name == "Milk A"


class TestSanitizePrice:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("3", "3"),
            ("3.50", "3.50"),
            ("$3.50", "3.50"),
            ("$", ""),
            (".5", ".5"),
            ("", ""),
        ],
    )
    def test_accepted(self, raw, expected):
        assert sanitize_price("1.00", raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "1.2.3", "3$", "$$3", "-1", "1,50", " 1"])
    def test_rejected_keeps_previous(self, raw):
        assert sanitize_price("1.00", raw) == "1.00"


class TestApplyEdit:
    def test_edit_touches_only_target(self):
        items = [Item.blank(1), Item.blank(2)]
        out = apply_edit(items, 2, "name", "Juice")

        assert out[1].name == "Juice"
        assert out[0].name == ""
        assert items[1].name == ""

    def test_unit_type_resets_unit(self):
        items = [Item(id=1, unit="L", unit_type="volume")]
        out = apply_edit(items, 1, "unitType", "weight")

        assert out[0].unit_type is Dimension.WEIGHT
        assert out[0].unit == "g"

    def test_price_is_sanitized(self):
        items = [Item(id=1, price="2")]
        assert apply_edit(items, 1, "price", "$2.5")[0].price == "2.5"
        assert apply_edit(items, 1, "price", "2x")[0].price == "2"

    def test_unit_must_match_dimension(self):
        items = [Item.blank(1)]
        assert apply_edit(items, 1, "unit", "fl oz")[0].unit == "fl oz"
        with pytest.raises(UnknownUnit):
            apply_edit(items, 1, "unit", "kg")

    def test_unknown_dimension(self):
        with pytest.raises(UnknownDimension):
            apply_edit([Item.blank(1)], 1, "unitType", "length")

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            apply_edit([Item.blank(1)], 1, "colour", "red")


class TestItem:
    def test_unit_outside_dimension_rejected(self):
        with pytest.raises(UnknownUnit):
            Item(id=1, name="x", price="1", amount="1", unit="kg")

    def test_unknown_unit_type_rejected(self):
        with pytest.raises(UnknownDimension):
            Item(id=1, unit="m", unit_type="length")

    def test_string_unit_type_coerced(self):
        item = Item(id=1, unit="dozen", unit_type="count")
        assert item.unit_type is Dimension.COUNT
