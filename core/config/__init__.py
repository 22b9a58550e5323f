"""
Catalog Core Config - Public API
===================================
Admin-configurable variant engine rules.
"""

from core.config.rules import (
    DEFAULT_VARIANT_RULES,
    ConfigStore,
    InMemoryConfigStore,
    VariantRules,
)

__all__ = [
    "VariantRules",
    "DEFAULT_VARIANT_RULES",
    "ConfigStore",
    "InMemoryConfigStore",
]
