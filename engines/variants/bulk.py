"""
Catalog Variant Engine - Bulk Editor
=======================================
Batch price / stock edits over a caller-managed selection of options.

RULES:
- Only selected options change; count, SKU and assignment never change
- Empty selection or unparseable value → no-op, reported, never raised
- A no-op returns the very same options tuple it was given
- "Select all" toggles between full and empty selection
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Sequence, Tuple, Union

from core.commands.rejection import ReasonCode, RejectionReason
from engines.variants.models import VariantOption

logger = logging.getLogger("catalog.variants")

POLICY_NAME = "bulk_edit_policy"


class BulkField(Enum):
    PRICE = "price"
    STOCK = "stock"


@dataclass(frozen=True)
class BulkEditResult:
    """
    Outcome of a bulk edit.

    applied=False means nothing changed: options is the input tuple
    and reason explains why.
    """
    options: Tuple[VariantOption, ...]
    applied: bool
    updated_count: int = 0
    reason: Optional[RejectionReason] = None

    def __post_init__(self):
        if self.applied and self.reason is not None:
            raise ValueError("An applied bulk edit must not carry a reason.")
        if not self.applied and self.reason is None:
            raise ValueError("A skipped bulk edit must carry a reason.")


# ══════════════════════════════════════════════════════════════
# PARSING
# ══════════════════════════════════════════════════════════════

def coerce_field(field: Union[BulkField, str]) -> BulkField:
    if isinstance(field, BulkField):
        return field
    return BulkField(str(field).lower())


def parse_bulk_value(
    field: Union[BulkField, str],
    raw,
) -> Optional[Union[Decimal, int]]:
    """
    Decimal for PRICE, int for STOCK, None when the input is not a
    usable number (blank, non-numeric, NaN/Infinity, negative, or a
    fractional stock count).
    """
    field = coerce_field(field)
    if raw is None or isinstance(raw, bool):
        return None
    try:
        number = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not number.is_finite() or number < 0:
        return None
    if field is BulkField.STOCK:
        if number != number.to_integral_value():
            return None
        return int(number)
    return number


def _skipped(options, code: str, message: str) -> BulkEditResult:
    logger.warning(f"Bulk edit skipped: {message}")
    return BulkEditResult(
        options=options,
        applied=False,
        reason=RejectionReason(code=code, message=message, policy_name=POLICY_NAME),
    )


# ══════════════════════════════════════════════════════════════
# BULK EDIT
# ══════════════════════════════════════════════════════════════

def apply_bulk(
    options: Sequence[VariantOption],
    selected_ids: Iterable[str],
    field: Union[BulkField, str],
    value,
) -> BulkEditResult:
    """Set price or stock on every selected option."""
    if not isinstance(options, tuple):
        options = tuple(options)
    selected = frozenset(selected_ids or ())
    field = coerce_field(field)

    if not selected:
        return _skipped(
            options, ReasonCode.EMPTY_SELECTION, "No options are selected.",
        )

    parsed = parse_bulk_value(field, value)
    if parsed is None:
        return _skipped(
            options,
            ReasonCode.INVALID_BULK_VALUE,
            f"'{value}' is not a valid {field.value} value.",
        )

    updated = 0
    edited = []
    for option in options:
        if option.option_id not in selected:
            edited.append(option)
            continue
        if field is BulkField.PRICE:
            edited.append(replace(option, price=parsed))
        else:
            edited.append(replace(option, stock_quantity=parsed))
        updated += 1

    if updated == 0:
        return _skipped(
            options,
            ReasonCode.OPTION_NOT_FOUND,
            "None of the selected options exist.",
        )

    logger.info(f"Bulk edit set {field.value}={parsed} on {updated} options")
    return BulkEditResult(options=tuple(edited), applied=True, updated_count=updated)


# ══════════════════════════════════════════════════════════════
# SELECTION HELPERS
# ══════════════════════════════════════════════════════════════

def toggle_select_all(
    options: Sequence[VariantOption],
    selected_ids: Iterable[str],
) -> FrozenSet[str]:
    """Everything selected → nothing; otherwise → everything."""
    all_ids = frozenset(o.option_id for o in options)
    current = frozenset(selected_ids or ()) & all_ids
    if all_ids and current == all_ids:
        return frozenset()
    return all_ids


def toggle_selection(selected_ids: Iterable[str], option_id: str) -> FrozenSet[str]:
    current = frozenset(selected_ids or ())
    if option_id in current:
        return current - {option_id}
    return current | {option_id}
