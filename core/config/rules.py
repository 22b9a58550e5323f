"""
Catalog Core Config - Variant Engine Rules
=============================================
Limits and literals used by the variant engine come from
admin-configurable data, not from engine source code.

Rules may be set globally (the default) or overridden
per product.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Optional, Protocol


# ══════════════════════════════════════════════════════════════
# VARIANT RULES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VariantRules:
    """
    Tunables for option generation and storefront display.

    max_combinations:     Ceiling on Π |dimension.values| for one product.
                          None disables the ceiling.
    low_stock_threshold:  Options at or below this stock (and above 0)
                          are reported as LOW_STOCK.
    option_sku_prefix:    Leading literal of every generated option SKU.
    product_sku_fallback: Prefix used when a product name normalizes to nothing.
    """

    max_combinations: Optional[int] = 1000
    low_stock_threshold: int = 5
    option_sku_prefix: str = "VAR"
    product_sku_fallback: str = "PROD"

    def __post_init__(self) -> None:
        if self.max_combinations is not None and self.max_combinations < 1:
            raise ValueError(
                f"max_combinations must be >= 1 or None, got {self.max_combinations}."
            )
        if self.low_stock_threshold < 0:
            raise ValueError(
                f"low_stock_threshold cannot be negative, got {self.low_stock_threshold}."
            )
        for literal in (self.option_sku_prefix, self.product_sku_fallback):
            if not literal or not literal.isalnum() or literal.upper() != literal:
                raise ValueError(
                    f"SKU literal '{literal}' must be non-empty uppercase A-Z/0-9."
                )

    def with_overrides(self, **changes) -> VariantRules:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_VARIANT_RULES = VariantRules()


# ══════════════════════════════════════════════════════════════
# CONFIG STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class ConfigStore(Protocol):
    """
    Protocol for admin-configured rule storage.

    Implementations may back this with a database, file, or in-memory store.
    """

    def get_variant_rules(self, product_id: Optional[str] = None) -> VariantRules:
        """Fetch the rules that apply to a product (or the global default)."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY CONFIG STORE (for testing / bootstrap)
# ══════════════════════════════════════════════════════════════

class InMemoryConfigStore:
    """Simple in-memory config store for testing and bootstrap."""

    def __init__(self, default: VariantRules = DEFAULT_VARIANT_RULES) -> None:
        self._default = default
        self._product_rules: Dict[str, VariantRules] = {}

    def set_default(self, rules: VariantRules) -> None:
        self._default = rules

    def set_product_rules(self, product_id: str, rules: VariantRules) -> None:
        self._product_rules[product_id] = rules

    def clear_product_rules(self, product_id: str) -> None:
        self._product_rules.pop(product_id, None)

    def get_variant_rules(self, product_id: Optional[str] = None) -> VariantRules:
        if product_id is not None and product_id in self._product_rules:
            return self._product_rules[product_id]
        return self._default
