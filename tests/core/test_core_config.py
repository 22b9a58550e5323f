"""
Tests for core.config - Admin-configurable variant rules.
"""

import pytest

from core.config.rules import (
    DEFAULT_VARIANT_RULES,
    InMemoryConfigStore,
    VariantRules,
)


# ── VariantRules Tests ───────────────────────────────────────

class TestVariantRules:
    def test_defaults(self):
        rules = VariantRules()
        assert rules.max_combinations == 1000
        assert rules.low_stock_threshold == 5
        assert rules.option_sku_prefix == "VAR"
        assert rules.product_sku_fallback == "PROD"

    def test_ceiling_can_be_disabled(self):
        assert VariantRules(max_combinations=None).max_combinations is None

    def test_zero_ceiling_rejected(self):
        with pytest.raises(ValueError, match="max_combinations"):
            VariantRules(max_combinations=0)

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError, match="low_stock_threshold"):
            VariantRules(low_stock_threshold=-1)

    def test_lowercase_prefix_rejected(self):
        with pytest.raises(ValueError, match="uppercase"):
            VariantRules(option_sku_prefix="var")

    def test_prefix_with_dash_rejected(self):
        with pytest.raises(ValueError, match="uppercase"):
            VariantRules(option_sku_prefix="V-A")

    def test_with_overrides_returns_copy(self):
        rules = DEFAULT_VARIANT_RULES.with_overrides(max_combinations=50)
        assert rules.max_combinations == 50
        assert DEFAULT_VARIANT_RULES.max_combinations == 1000

    def test_with_overrides_validates(self):
        with pytest.raises(ValueError):
            DEFAULT_VARIANT_RULES.with_overrides(low_stock_threshold=-3)

    def test_frozen_immutability(self):
        rules = VariantRules()
        with pytest.raises(AttributeError):
            rules.max_combinations = 10


# ── InMemoryConfigStore Tests ────────────────────────────────

class TestInMemoryConfigStore:
    def test_default_rules(self):
        store = InMemoryConfigStore()
        assert store.get_variant_rules() == DEFAULT_VARIANT_RULES
        assert store.get_variant_rules("prod-1") == DEFAULT_VARIANT_RULES

    def test_product_override(self):
        store = InMemoryConfigStore()
        tight = VariantRules(max_combinations=4)
        store.set_product_rules("prod-1", tight)

        assert store.get_variant_rules("prod-1") is tight
        assert store.get_variant_rules("prod-2") == DEFAULT_VARIANT_RULES

    def test_clear_product_override(self):
        store = InMemoryConfigStore()
        store.set_product_rules("prod-1", VariantRules(max_combinations=4))
        store.clear_product_rules("prod-1")
        assert store.get_variant_rules("prod-1") == DEFAULT_VARIANT_RULES

    def test_clear_unknown_product_is_noop(self):
        store = InMemoryConfigStore()
        store.clear_product_rules("missing")
        assert store.get_variant_rules("missing") == DEFAULT_VARIANT_RULES

    def test_set_default(self):
        store = InMemoryConfigStore()
        rules = VariantRules(low_stock_threshold=2)
        store.set_default(rules)
        assert store.get_variant_rules("anything") is rules

    def test_custom_default_in_constructor(self):
        rules = VariantRules(option_sku_prefix="OPT")
        store = InMemoryConfigStore(default=rules)
        assert store.get_variant_rules().option_sku_prefix == "OPT"
