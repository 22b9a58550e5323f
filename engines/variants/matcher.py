"""
Catalog Variant Engine - Option Matcher
==========================================
Storefront-side resolver: a buyer's per-dimension selection in,
exactly one orderable option (or a typed failure) out.

RULES:
- Pure and idempotent; never mutates, never raises on bad selections
- Required dimension missing → INCOMPLETE_SELECTION
- Selection is restricted to the dimensions present in the option set;
  options are looked up by their order-independent combination key
  (the " - " label is rebuilt only for display)
- No option for the combination → NO_MATCHING_OPTION
- Matched option with stock <= 0 → OUT_OF_STOCK
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from engines.variants.combinations import build_label, index_by_key
from engines.variants.models import VariantDimension, VariantOption

logger = logging.getLogger("catalog.variants.matcher")


class MatchError(Enum):
    INCOMPLETE_SELECTION = "INCOMPLETE_SELECTION"
    NO_MATCHING_OPTION = "NO_MATCHING_OPTION"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class StockStatus(Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


@dataclass(frozen=True)
class MatchResult:
    """
    Exactly one of option / error is set.

    label is the canonical display label of the selection, when one
    could be built. missing_dimensions lists required dimensions the
    buyer has not chosen yet.
    """
    option: Optional[VariantOption] = None
    error: Optional[MatchError] = None
    message: str = ""
    label: str = ""
    missing_dimensions: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if (self.option is None) == (self.error is None):
            raise ValueError("MatchResult needs exactly one of option or error.")

    @property
    def matched(self) -> bool:
        return self.option is not None


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def present_dimensions(
    options: Sequence[VariantOption],
    dimensions: Sequence[VariantDimension],
) -> List[str]:
    """
    Names of the dimensions that the option set actually covers,
    in declared dimension order.
    """
    in_options: Dict[str, None] = {}
    for option in options:
        for name in option.dimension_names:
            in_options.setdefault(name, None)
    ordered = [d.name for d in dimensions if d.name in in_options]
    ordered.extend(name for name in in_options if name not in ordered)
    return ordered


def canonical_selection(
    options: Sequence[VariantOption],
    dimensions: Sequence[VariantDimension],
    selection: Mapping[str, str],
) -> Tuple[Tuple[str, str], ...]:
    return tuple(
        (name, selection[name])
        for name in present_dimensions(options, dimensions)
        if not _blank(selection.get(name))
    )


# ══════════════════════════════════════════════════════════════
# RESOLVE
# ══════════════════════════════════════════════════════════════

def resolve(
    options: Sequence[VariantOption],
    dimensions: Sequence[VariantDimension],
    selection: Mapping[str, str],
) -> MatchResult:
    """Turn a buyer's selection into one orderable option."""
    selection = dict(selection or {})

    missing = tuple(
        d.name for d in dimensions
        if d.is_required and _blank(selection.get(d.name))
    )
    if missing:
        return MatchResult(
            error=MatchError.INCOMPLETE_SELECTION,
            message=f"Please choose: {', '.join(missing)}.",
            missing_dimensions=missing,
        )

    canonical = canonical_selection(options, dimensions, selection)
    label = build_label(canonical)
    option = index_by_key(options).get(tuple(sorted(canonical))) if canonical else None

    if option is None:
        logger.debug(f"No option matches selection '{label}'")
        return MatchResult(
            error=MatchError.NO_MATCHING_OPTION,
            message=f"The combination '{label}' is not available.",
            label=label,
        )

    if option.stock_quantity <= 0:
        return MatchResult(
            error=MatchError.OUT_OF_STOCK,
            message=f"'{option.label}' is out of stock.",
            label=option.label,
        )

    return MatchResult(option=option, label=option.label)


# ══════════════════════════════════════════════════════════════
# AVAILABILITY (selector hints)
# ══════════════════════════════════════════════════════════════

def _compatible(option: VariantOption, wanted: Mapping[str, str]) -> bool:
    return all(
        _blank(wanted.get(dimension)) or wanted[dimension] == value
        for dimension, value in option.value_assignment
    )


def is_value_available(
    options: Sequence[VariantOption],
    selection: Mapping[str, str],
    dimension_name: str,
    value: str,
) -> bool:
    """
    True when some in-stock option agrees with the current selection
    once dimension_name is set to value.
    """
    wanted = dict(selection or {})
    wanted[dimension_name] = value
    return any(o.in_stock and _compatible(o, wanted) for o in options)


def available_values(
    options: Sequence[VariantOption],
    dimensions: Sequence[VariantDimension],
    selection: Mapping[str, str],
) -> Dict[str, Tuple[str, ...]]:
    """For each dimension, the values a buyer can still pick."""
    return {
        dimension.name: tuple(
            value for value in dimension.value_names
            if is_value_available(options, selection, dimension.name, value)
        )
        for dimension in dimensions
    }


def stock_status(option: VariantOption, low_stock_threshold: int = 5) -> StockStatus:
    if option.stock_quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if option.stock_quantity <= low_stock_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK
