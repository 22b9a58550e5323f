"""
Catalog Variant Engine - Combination Generator, Price & Stock Resolution
===========================================================================
Engine: Variants

Builds the option matrix for a product from its dimensions.

RULES (NON-NEGOTIABLE):
- Options are exactly the cartesian product of all dimension values
- Dimension order and value order are preserved
- No dimensions → no options (never one implicit option)
- Regeneration is total: the previous option list is discarded
- Price: the first dimension (declared order) whose participating value
  has a custom price supplies the WHOLE option price; else the host
  base price when positive; else unresolved (None). Never additive.
- Stock: the MINIMUM of the participating values' stock; 0 when no
  dimension carries stock data
- Host stock mirrors Σ option stock while the product is in variant mode
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from core.time.clock import Clock
from engines.variants.models import (
    Assignment,
    HostProduct,
    VariantDimension,
    VariantOption,
    to_decimal,
)
from engines.variants.sku import VALUE_FALLBACK, generate_option_sku

logger = logging.getLogger("catalog.variants")

LABEL_SEPARATOR = " - "
PAIR_SEPARATOR = ": "

AssignmentLike = Union[Assignment, Mapping[str, str]]


class CombinationLimitExceeded(ValueError):
    """Raised when Π |values| exceeds the configured ceiling."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"{count} combinations exceeds the limit of {limit}."
        )


# ══════════════════════════════════════════════════════════════
# LABELS
# ══════════════════════════════════════════════════════════════

def _pairs(value_assignment: AssignmentLike) -> Assignment:
    if isinstance(value_assignment, Mapping):
        return tuple(value_assignment.items())
    return tuple(value_assignment)


def build_label(value_assignment: AssignmentLike) -> str:
    """
    "Color: Red - Size: M"

    The generator and the matcher both build labels here, so the
    format cannot drift between them.
    """
    return LABEL_SEPARATOR.join(
        f"{dimension}{PAIR_SEPARATOR}{value}"
        for dimension, value in _pairs(value_assignment)
    )


def combination_count(dimensions: Sequence[VariantDimension]) -> int:
    """Π |dimension.values|, or 0 when there are no dimensions."""
    if not dimensions:
        return 0
    count = 1
    for dimension in dimensions:
        count *= len(dimension.values)
    return count


# ══════════════════════════════════════════════════════════════
# PRICE RESOLVER
# ══════════════════════════════════════════════════════════════

def resolve_price(
    value_assignment: AssignmentLike,
    dimensions: Sequence[VariantDimension],
    base_price=None,
) -> Optional[Decimal]:
    """
    Full price of one combination.

    1. first dimension in declared order whose participating value
       (or, for legacy records, the dimension itself) has a custom price
    2. base_price, if it is a positive number
    3. None: left for manual entry
    """
    assignment = dict(_pairs(value_assignment))
    for dimension in dimensions:
        value = assignment.get(dimension.name)
        if value is None:
            continue
        detail = dimension.detail_for(value)
        if detail is not None and detail.custom_price is not None:
            return detail.custom_price
        if dimension.custom_price is not None:
            return dimension.custom_price

    try:
        base = to_decimal(base_price, "base_price")
    except ValueError:
        return None
    if base is not None and base > 0:
        return base
    return None


# ══════════════════════════════════════════════════════════════
# STOCK AGGREGATOR
# ══════════════════════════════════════════════════════════════

def resolve_stock(
    value_assignment: AssignmentLike,
    dimensions: Sequence[VariantDimension],
) -> int:
    """Availability is bounded by the scarcest participating value."""
    assignment = dict(_pairs(value_assignment))
    figures: List[int] = []
    for dimension in dimensions:
        value = assignment.get(dimension.name)
        if value is None:
            continue
        detail = dimension.detail_for(value)
        if detail is not None and detail.stock_quantity is not None:
            figures.append(detail.stock_quantity)
        elif dimension.stock_quantity is not None:
            figures.append(dimension.stock_quantity)
    return min(figures) if figures else 0


def total_stock(options: Iterable[VariantOption]) -> int:
    return sum(option.stock_quantity for option in options)


def sync_host_stock(
    host: HostProduct,
    options: Iterable[VariantOption],
) -> HostProduct:
    """
    Mirror Σ option stock into the host product.

    Only in variant mode; otherwise the host's own figure is
    authoritative and is returned unchanged.
    """
    if not host.has_variants:
        return host
    total = total_stock(options)
    if total == host.stock_quantity:
        return host
    return replace(host, stock_quantity=total)


@dataclass(frozen=True)
class StockSummary:
    total: int
    option_count: int
    in_stock_count: int

    @property
    def is_available(self) -> bool:
        return self.total > 0


def stock_summary(options: Sequence[VariantOption]) -> StockSummary:
    return StockSummary(
        total=total_stock(options),
        option_count=len(options),
        in_stock_count=sum(1 for o in options if o.in_stock),
    )


# ══════════════════════════════════════════════════════════════
# COMBINATION GENERATOR
# ══════════════════════════════════════════════════════════════

def _cartesian(
    dimensions: Sequence[VariantDimension],
    position: int = 0,
    current: Assignment = (),
) -> List[Assignment]:
    if position == len(dimensions):
        return [current]
    dimension = dimensions[position]
    results: List[Assignment] = []
    for detail in dimension.values:
        results.extend(_cartesian(
            dimensions, position + 1, current + ((dimension.name, detail.value),),
        ))
    return results


def option_id_for(index: int) -> str:
    return f"OPT-{index + 1:04d}"


def generate(
    dimensions: Sequence[VariantDimension],
    base_price=None,
    *,
    clock: Optional[Clock] = None,
    max_combinations: Optional[int] = None,
    sku_prefix: str = VALUE_FALLBACK,
) -> List[VariantOption]:
    """
    Generate the full option list for the given dimensions.

    Each option gets its label, price (Price Resolver), stock (Stock
    Aggregator) and SKU (indexed by its position in the output).
    Raises CombinationLimitExceeded before building anything if
    max_combinations is set and exceeded.
    """
    dimensions = tuple(dimensions)
    if not dimensions:
        return []

    count = combination_count(dimensions)
    if max_combinations is not None and count > max_combinations:
        raise CombinationLimitExceeded(count, max_combinations)

    options: List[VariantOption] = []
    for index, assignment in enumerate(_cartesian(dimensions)):
        options.append(VariantOption(
            option_id=option_id_for(index),
            label=build_label(assignment),
            value_assignment=assignment,
            price=resolve_price(assignment, dimensions, base_price),
            stock_quantity=resolve_stock(assignment, dimensions),
            sku=generate_option_sku(
                assignment, index, clock=clock, prefix=sku_prefix,
            ),
        ))

    logger.debug(
        f"Generated {len(options)} options from "
        f"{len(dimensions)} dimensions"
    )
    return options


def index_by_key(options: Iterable[VariantOption]) -> Dict[Assignment, VariantOption]:
    """combination_key → option, for order-independent lookups."""
    return {option.combination_key: option for option in options}
