"""
Catalog Variant Engine - Combination Generator, Price & Stock Tests
======================================================================
Tests the cartesian generator, the Price Resolver and the Stock
Aggregator, plus the value objects they operate on.
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.time.clock import FixedClock
from engines.variants.combinations import (
    CombinationLimitExceeded,
    build_label,
    combination_count,
    generate,
    index_by_key,
    option_id_for,
    resolve_price,
    resolve_stock,
    stock_summary,
    sync_host_stock,
    total_stock,
)
from engines.variants.models import (
    HostProduct,
    ProductVariantState,
    ValueDetail,
    VariantDimension,
    VariantOption,
    value_details,
)
from engines.variants.sku import SKU_PATTERN

CLOCK = FixedClock(datetime(2025, 1, 1, tzinfo=timezone.utc))


def _dim(name, values, order=0, **kwargs):
    return VariantDimension(
        dimension_id=f"DIM-{name.upper()}",
        name=name,
        values=value_details(values),
        order=order,
        **kwargs,
    )


COLOR = _dim("Color", [
    {"value": "red", "stock_quantity": 5},
    {"value": "blue", "stock_quantity": 2},
])
SIZE = _dim("Size", [
    {"value": "S", "stock_quantity": 3},
    {"value": "M", "stock_quantity": 9},
], order=1)


# ══════════════════════════════════════════════════════════════
# VALUE OBJECTS
# ══════════════════════════════════════════════════════════════

class TestValueObjects:
    def test_value_detail_trims(self):
        assert ValueDetail("  Red ").value == "Red"

    def test_value_detail_price_becomes_decimal(self):
        assert ValueDetail("Red", custom_price="12.50").custom_price == Decimal("12.50")

    def test_value_detail_rejects_negative_stock(self):
        with pytest.raises(ValueError, match="negative"):
            ValueDetail("Red", stock_quantity=-1)

    @pytest.mark.parametrize("price", ["NaN", "Infinity", "-Infinity", Decimal("NaN")])
    def test_value_detail_rejects_non_finite_price(self, price):
        with pytest.raises(ValueError, match="finite"):
            ValueDetail("Red", custom_price=price)

    def test_value_detail_rejects_text_price(self):
        with pytest.raises(ValueError, match="not a number"):
            ValueDetail("Red", custom_price="cheap")

    @pytest.mark.parametrize("price", ["NaN", "Infinity", Decimal("sNaN")])
    def test_host_rejects_non_finite_base_price(self, price):
        with pytest.raises(ValueError, match="finite"):
            HostProduct(product_id="p1", base_price=price)

    def test_host_rejects_negative_base_price(self):
        with pytest.raises(ValueError, match="negative"):
            HostProduct(product_id="p1", base_price=-5)

    def test_host_base_price_becomes_decimal(self):
        assert HostProduct(product_id="p1", base_price="19.90").base_price == Decimal("19.90")
        assert HostProduct(product_id="p1").base_price is None

    def test_value_detail_from_plain_string(self):
        assert ValueDetail.from_dict("Blue") == ValueDetail("Blue")

    def test_dimension_requires_values(self):
        with pytest.raises(ValueError, match="at least one value"):
            _dim("Color", [])

    def test_dimension_rejects_duplicate_values(self):
        with pytest.raises(ValueError, match="Duplicate value"):
            _dim("Color", ["Red", " Red"])

    def test_dimension_from_legacy_dict(self):
        dimension = VariantDimension.from_dict({
            "dimension_id": "D1",
            "name": "Size",
            "values": ["S", "M"],
            "stock_quantity": 4,
        })
        assert dimension.value_names == ("S", "M")
        assert dimension.stock_quantity == 4

    def test_dimension_round_trip(self):
        assert VariantDimension.from_dict(COLOR.to_dict()) == COLOR

    def test_state_rejects_duplicate_dimension_names(self):
        with pytest.raises(ValueError, match="unique"):
            ProductVariantState(
                host=HostProduct(product_id="p1", has_variants=True),
                dimensions=(COLOR, replace(COLOR, dimension_id="DIM-OTHER")),
            )

    def test_option_combination_key_is_sorted(self):
        option = VariantOption(
            option_id="OPT-0001",
            label="Size: M - Color: red",
            value_assignment=(("Size", "M"), ("Color", "red")),
            sku="VAR-M-RED-600000-0",
        )
        assert option.combination_key == (("Color", "red"), ("Size", "M"))


# ══════════════════════════════════════════════════════════════
# GENERATOR
# ══════════════════════════════════════════════════════════════

class TestGenerate:
    def test_no_dimensions_no_options(self):
        assert generate([], clock=CLOCK) == []

    def test_count_is_product_of_value_counts(self):
        material = _dim("Material", ["Cotton", "Silk", "Wool"], order=2)
        options = generate([COLOR, SIZE, material], clock=CLOCK)
        assert len(options) == 2 * 2 * 3
        assert combination_count([COLOR, SIZE, material]) == 12

    def test_assignments_are_distinct(self):
        options = generate([COLOR, SIZE], clock=CLOCK)
        keys = {o.combination_key for o in options}
        assert len(keys) == len(options)

    def test_every_option_assigns_every_dimension_once(self):
        for option in generate([COLOR, SIZE], clock=CLOCK):
            assert option.dimension_names == ("Color", "Size")

    def test_order_preserved(self):
        labels = [o.label for o in generate([COLOR, SIZE], clock=CLOCK)]
        assert labels == [
            "Color: red - Size: S",
            "Color: red - Size: M",
            "Color: blue - Size: S",
            "Color: blue - Size: M",
        ]

    def test_option_ids_are_sequential(self):
        options = generate([COLOR, SIZE], clock=CLOCK)
        assert [o.option_id for o in options] == [
            "OPT-0001", "OPT-0002", "OPT-0003", "OPT-0004",
        ]
        assert option_id_for(0) == "OPT-0001"

    def test_skus_valid_and_unique(self):
        options = generate([COLOR, SIZE], clock=CLOCK)
        skus = [o.sku for o in options]
        assert all(SKU_PATTERN.match(s) for s in skus)
        assert len(set(skus)) == len(skus)
        assert skus[0] == "VAR-RED-S-600000-0"

    def test_sku_prefix(self):
        options = generate([COLOR], clock=CLOCK, sku_prefix="OPT")
        assert options[0].sku.startswith("OPT-")

    def test_limit_exceeded_raises(self):
        with pytest.raises(CombinationLimitExceeded) as exc:
            generate([COLOR, SIZE], clock=CLOCK, max_combinations=3)
        assert exc.value.count == 4
        assert exc.value.limit == 3

    def test_limit_reached_is_allowed(self):
        assert len(generate([COLOR, SIZE], clock=CLOCK, max_combinations=4)) == 4

    def test_regeneration_discards_manual_price(self):
        color = _dim("Color", [{"value": "red", "custom_price": 50}, "blue"])
        options = generate([color, SIZE], base_price=40, clock=CLOCK)
        edited = [replace(options[0], price=Decimal("999"))] + options[1:]
        assert edited[0].price == Decimal("999")

        regenerated = generate([color, SIZE], base_price=40, clock=CLOCK)
        assert regenerated[0].price == Decimal("50")

    def test_label_helper_accepts_mapping(self):
        assert build_label({"Color": "Red", "Size": "M"}) == "Color: Red - Size: M"

    def test_index_by_key(self):
        options = generate([COLOR, SIZE], clock=CLOCK)
        index = index_by_key(options)
        assert index[(("Color", "blue"), ("Size", "S"))].label == "Color: blue - Size: S"


# ══════════════════════════════════════════════════════════════
# PRICE RESOLVER
# ══════════════════════════════════════════════════════════════

class TestResolvePrice:
    def test_first_dimension_price_wins_over_base(self):
        color = _dim("Color", [{"value": "red", "custom_price": 50}])
        size = _dim("Size", ["M"], order=1)
        price = resolve_price((("Color", "red"), ("Size", "M")), [color, size], 40)
        assert price == Decimal("50")

    def test_first_dimension_wins_over_later_dimension(self):
        color = _dim("Color", [{"value": "red", "custom_price": 50}])
        size = _dim("Size", [{"value": "XL", "custom_price": 70}], order=1)
        price = resolve_price((("Color", "red"), ("Size", "XL")), [color, size], 40)
        assert price == Decimal("50")

    def test_prices_are_not_added(self):
        color = _dim("Color", [{"value": "red", "custom_price": 10}])
        size = _dim("Size", [{"value": "XL", "custom_price": 5}], order=1)
        price = resolve_price((("Color", "red"), ("Size", "XL")), [color, size])
        assert price == Decimal("10")

    def test_later_dimension_when_first_has_none(self):
        color = _dim("Color", ["red"])
        size = _dim("Size", [{"value": "XL", "custom_price": 70}], order=1)
        price = resolve_price((("Color", "red"), ("Size", "XL")), [color, size], 40)
        assert price == Decimal("70")

    def test_base_price_fallback(self):
        price = resolve_price((("Color", "red"),), [_dim("Color", ["red"])], 40)
        assert price == Decimal("40")

    def test_zero_base_price_is_unresolved(self):
        assert resolve_price((("Color", "red"),), [_dim("Color", ["red"])], 0) is None

    @pytest.mark.parametrize("base", [Decimal("NaN"), "Infinity", "n/a"])
    def test_malformed_base_price_is_unresolved(self, base):
        assert resolve_price((("Color", "red"),), [_dim("Color", ["red"])], base) is None

    def test_generate_with_malformed_base_leaves_prices_open(self):
        options = generate([COLOR], Decimal("NaN"), clock=CLOCK)
        assert options
        assert all(o.price is None for o in options)

    def test_no_price_anywhere(self):
        assert resolve_price((("Color", "red"),), [_dim("Color", ["red"])]) is None

    def test_zero_custom_price_is_a_price(self):
        color = _dim("Color", [{"value": "red", "custom_price": 0}])
        assert resolve_price((("Color", "red"),), [color], 40) == Decimal("0")

    def test_legacy_dimension_price(self):
        color = _dim("Color", ["red"], custom_price=33)
        assert resolve_price((("Color", "red"),), [color], 40) == Decimal("33")

    def test_generated_prices(self):
        color = _dim("Color", [{"value": "red", "custom_price": 50}, "blue"])
        size = _dim("Size", ["M"], order=1)
        options = generate([color, size], base_price=40, clock=CLOCK)
        assert [o.price for o in options] == [Decimal("50"), Decimal("40")]


# ══════════════════════════════════════════════════════════════
# STOCK AGGREGATOR
# ══════════════════════════════════════════════════════════════

class TestResolveStock:
    def test_minimum_across_values(self):
        options = {o.combination_key: o for o in generate([COLOR, SIZE], clock=CLOCK)}
        assert options[(("Color", "red"), ("Size", "S"))].stock_quantity == 3
        assert options[(("Color", "red"), ("Size", "M"))].stock_quantity == 5
        assert options[(("Color", "blue"), ("Size", "S"))].stock_quantity == 2
        assert options[(("Color", "blue"), ("Size", "M"))].stock_quantity == 2

    def test_values_without_data_are_ignored(self):
        color = _dim("Color", ["red"])
        assert resolve_stock((("Color", "red"), ("Size", "M")), [color, SIZE]) == 9

    def test_no_stock_data_gives_zero(self):
        assert resolve_stock((("Color", "red"),), [_dim("Color", ["red"])]) == 0

    def test_legacy_dimension_stock(self):
        color = _dim("Color", ["red"], stock_quantity=4)
        assert resolve_stock((("Color", "red"), ("Size", "M")), [color, SIZE]) == 4

    def test_value_stock_overrides_legacy_dimension_stock(self):
        color = _dim("Color", [{"value": "red", "stock_quantity": 1}], stock_quantity=4)
        assert resolve_stock((("Color", "red"),), [color]) == 1


class TestHostStock:
    def test_total_is_sum_of_options(self):
        options = generate([COLOR, SIZE], clock=CLOCK)
        assert total_stock(options) == 3 + 5 + 2 + 2

    def test_sync_in_variant_mode(self):
        options = generate([COLOR, SIZE], clock=CLOCK)
        host = HostProduct(product_id="p1", has_variants=True, stock_quantity=100)
        assert sync_host_stock(host, options).stock_quantity == 12

    def test_sync_outside_variant_mode_is_noop(self):
        options = generate([COLOR, SIZE], clock=CLOCK)
        host = HostProduct(product_id="p1", has_variants=False, stock_quantity=100)
        assert sync_host_stock(host, options) is host

    def test_summary(self):
        color = _dim("Color", [
            {"value": "red", "stock_quantity": 5},
            {"value": "blue", "stock_quantity": 0},
        ])
        summary = stock_summary(generate([color], clock=CLOCK))
        assert summary.total == 5
        assert summary.option_count == 2
        assert summary.in_stock_count == 1
        assert summary.is_available
