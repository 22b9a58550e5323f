"""
Catalog Variant Engine - Policies
====================================
Engine-specific validation policies for variant editor commands.

Every policy has the same shape:

    policy(command, state, rules) -> Optional[RejectionReason]

None means "no objection". Policies never mutate and never raise on
bad content; a bad edit becomes a RejectionReason.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Tuple

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.config.rules import VariantRules
from engines.variants.bulk import POLICY_NAME as BULK_POLICY_NAME
from engines.variants.bulk import coerce_field, parse_bulk_value
from engines.variants.combinations import total_stock
from engines.variants.commands import (
    STRUCTURAL_COMMAND_TYPES,
    VARIANTS_DIMENSION_ADD_REQUEST,
    VARIANTS_DIMENSION_EDIT_VALUES_REQUEST,
    VARIANTS_DIMENSION_REMOVE_REQUEST,
    VARIANTS_OPTION_BULK_EDIT_REQUEST,
    VARIANTS_OPTION_UPDATE_REQUEST,
    VARIANTS_PRODUCT_SET_STOCK_REQUEST,
)
from engines.variants.models import ProductVariantState
from engines.variants.sku import is_valid_sku

Policy = Callable[[Command, ProductVariantState, VariantRules], Optional[RejectionReason]]


# ══════════════════════════════════════════════════════════════
# VALUE CHECKS
# ══════════════════════════════════════════════════════════════

def _valid_stock(value) -> bool:
    if value is None:
        return True
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _valid_price(value) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return False
    return number.is_finite() and number >= 0


def _reject(code: str, message: str, policy_name: str) -> RejectionReason:
    return RejectionReason(code=code, message=message, policy_name=policy_name)


# ══════════════════════════════════════════════════════════════
# HOST PRODUCT
# ══════════════════════════════════════════════════════════════

def variants_enabled_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    """Dimension and option edits need variant mode switched on."""
    if command.command_type not in STRUCTURAL_COMMAND_TYPES | {
        VARIANTS_OPTION_UPDATE_REQUEST,
        VARIANTS_OPTION_BULK_EDIT_REQUEST,
    }:
        return None

    if not state.host.has_variants:
        return _reject(
            ReasonCode.VARIANTS_DISABLED,
            f"Product {state.product_id} is not in variant mode.",
            "variants_enabled_policy",
        )
    return None


def host_stock_read_only_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    """
    While in variant mode the host stock is the sum of option stock
    and cannot be written directly.
    """
    if command.command_type != VARIANTS_PRODUCT_SET_STOCK_REQUEST:
        return None

    if state.host.has_variants:
        return _reject(
            ReasonCode.STOCK_READ_ONLY,
            "Stock is managed per option while variants are enabled.",
            "host_stock_read_only_policy",
        )

    quantity = command.payload.get("stock_quantity")
    if quantity is None or not _valid_stock(quantity):
        return _reject(
            ReasonCode.INVALID_STOCK,
            f"Stock must be a whole number >= 0, got {quantity!r}.",
            "host_stock_read_only_policy",
        )
    return None


# ══════════════════════════════════════════════════════════════
# DIMENSIONS
# ══════════════════════════════════════════════════════════════

def dimension_exists_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    if command.command_type not in (
        VARIANTS_DIMENSION_REMOVE_REQUEST,
        VARIANTS_DIMENSION_EDIT_VALUES_REQUEST,
    ):
        return None

    dimension_id = command.payload.get("dimension_id")
    if state.dimension_by_id(dimension_id) is None:
        return _reject(
            ReasonCode.DIMENSION_NOT_FOUND,
            f"Dimension {dimension_id} does not exist.",
            "dimension_exists_policy",
        )
    return None


def dimension_name_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    """Names are non-empty and unique within the product."""
    if command.command_type == VARIANTS_DIMENSION_ADD_REQUEST:
        name = command.payload.get("name")
        editing_id = None
    elif command.command_type == VARIANTS_DIMENSION_EDIT_VALUES_REQUEST:
        name = command.payload.get("name")
        if name is None:
            return None
        editing_id = command.payload.get("dimension_id")
    else:
        return None

    name = (name or "").strip()
    if not name:
        return _reject(
            ReasonCode.EMPTY_DIMENSION_NAME,
            "Dimension name cannot be empty.",
            "dimension_name_policy",
        )

    existing = state.dimension_named(name)
    if existing is not None and existing.dimension_id != editing_id:
        return _reject(
            ReasonCode.DUPLICATE_DIMENSION,
            f"A dimension named '{name}' already exists.",
            "dimension_name_policy",
        )

    if command.command_type == VARIANTS_DIMENSION_ADD_REQUEST:
        dimension_id = command.payload.get("dimension_id")
        if dimension_id and state.dimension_by_id(dimension_id) is not None:
            return _reject(
                ReasonCode.DUPLICATE_DIMENSION,
                f"Dimension id {dimension_id} is already in use.",
                "dimension_name_policy",
            )
    return None


def dimension_values_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    """Values are non-empty, unique (after trimming) and carry sane figures."""
    if command.command_type not in (
        VARIANTS_DIMENSION_ADD_REQUEST,
        VARIANTS_DIMENSION_EDIT_VALUES_REQUEST,
    ):
        return None

    entries = command.payload.get("values") or []
    if not entries:
        return _reject(
            ReasonCode.NO_VALUES,
            "A dimension needs at least one value.",
            "dimension_values_policy",
        )

    seen = set()
    for entry in entries:
        raw = entry.get("value")
        value = raw.strip() if isinstance(raw, str) else ""
        if not value:
            return _reject(
                ReasonCode.EMPTY_VALUE,
                "Dimension values cannot be empty.",
                "dimension_values_policy",
            )
        if value in seen:
            return _reject(
                ReasonCode.DUPLICATE_VALUE,
                f"Value '{value}' appears more than once.",
                "dimension_values_policy",
            )
        seen.add(value)

        if not _valid_stock(entry.get("stock_quantity")):
            return _reject(
                ReasonCode.INVALID_STOCK,
                f"Stock for '{value}' must be a whole number >= 0.",
                "dimension_values_policy",
            )
        if not _valid_price(entry.get("custom_price")):
            return _reject(
                ReasonCode.INVALID_PRICE,
                f"Price for '{value}' must be a number >= 0.",
                "dimension_values_policy",
            )
    return None


def _projected_counts(command: Command, state: ProductVariantState) -> List[int]:
    counts = [len(d.values) for d in state.dimensions]
    size = len(command.payload.get("values") or [])
    if command.command_type == VARIANTS_DIMENSION_ADD_REQUEST:
        counts.append(size)
    else:
        dimension_id = command.payload.get("dimension_id")
        counts = [
            size if d.dimension_id == dimension_id else len(d.values)
            for d in state.dimensions
        ]
    return counts


def combination_limit_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    """Π |values| after the edit must stay within rules.max_combinations."""
    if rules.max_combinations is None:
        return None
    if command.command_type not in (
        VARIANTS_DIMENSION_ADD_REQUEST,
        VARIANTS_DIMENSION_EDIT_VALUES_REQUEST,
    ):
        return None

    count = 1
    for size in _projected_counts(command, state):
        count *= size

    if count > rules.max_combinations:
        return _reject(
            ReasonCode.COMBINATION_LIMIT_EXCEEDED,
            f"This edit would produce {count} options; "
            f"the limit is {rules.max_combinations}.",
            "combination_limit_policy",
        )
    return None


# ══════════════════════════════════════════════════════════════
# OPTIONS
# ══════════════════════════════════════════════════════════════

def option_exists_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    if command.command_type != VARIANTS_OPTION_UPDATE_REQUEST:
        return None

    option_id = command.payload.get("option_id")
    if state.option_by_id(option_id) is None:
        return _reject(
            ReasonCode.OPTION_NOT_FOUND,
            f"Option {option_id} does not exist.",
            "option_exists_policy",
        )
    return None


def option_update_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    """Manual SKU must be well-formed and unique; figures must be sane."""
    if command.command_type != VARIANTS_OPTION_UPDATE_REQUEST:
        return None

    option_id = command.payload.get("option_id")
    sku = command.payload.get("sku")
    if sku is not None:
        candidate = sku.strip().upper() if isinstance(sku, str) else None
        if not is_valid_sku(candidate):
            return _reject(
                ReasonCode.INVALID_SKU,
                f"SKU {sku!r} may only contain A-Z, 0-9 and '-'.",
                "option_update_policy",
            )
        if any(
            o.sku == candidate and o.option_id != option_id
            for o in state.options
        ):
            return _reject(
                ReasonCode.DUPLICATE_SKU,
                f"SKU {candidate} is already used by another option.",
                "option_update_policy",
            )

    if not _valid_stock(command.payload.get("stock_quantity")):
        return _reject(
            ReasonCode.INVALID_STOCK,
            "Option stock must be a whole number >= 0.",
            "option_update_policy",
        )
    if not _valid_price(command.payload.get("price")):
        return _reject(
            ReasonCode.INVALID_PRICE,
            "Option price must be a number >= 0.",
            "option_update_policy",
        )
    return None


def bulk_edit_policy(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
) -> Optional[RejectionReason]:
    if command.command_type != VARIANTS_OPTION_BULK_EDIT_REQUEST:
        return None

    selected = set(command.payload.get("selected_ids") or ())
    if not selected:
        return _reject(
            ReasonCode.EMPTY_SELECTION, "No options are selected.", BULK_POLICY_NAME,
        )

    field = coerce_field(command.payload.get("field"))
    value = command.payload.get("value")
    if parse_bulk_value(field, value) is None:
        return _reject(
            ReasonCode.INVALID_BULK_VALUE,
            f"'{value}' is not a valid {field.value} value.",
            BULK_POLICY_NAME,
        )

    if not selected & set(state.option_ids()):
        return _reject(
            ReasonCode.OPTION_NOT_FOUND,
            "None of the selected options exist.",
            BULK_POLICY_NAME,
        )
    return None


# ══════════════════════════════════════════════════════════════
# REGISTRY
# ══════════════════════════════════════════════════════════════

# Evaluated in order; the first rejection wins.
VARIANT_POLICIES: Tuple[Policy, ...] = (
    variants_enabled_policy,
    host_stock_read_only_policy,
    dimension_exists_policy,
    dimension_name_policy,
    dimension_values_policy,
    combination_limit_policy,
    option_exists_policy,
    option_update_policy,
    bulk_edit_policy,
)


def evaluate_policies(
    command: Command,
    state: ProductVariantState,
    rules: VariantRules,
    policies: Tuple[Policy, ...] = VARIANT_POLICIES,
) -> Optional[RejectionReason]:
    for policy in policies:
        reason = policy(command, state, rules)
        if reason is not None:
            return reason
    return None


# ══════════════════════════════════════════════════════════════
# SAVE GUARD
# ══════════════════════════════════════════════════════════════

def validate_for_save(state: ProductVariantState) -> Optional[RejectionReason]:
    """
    Checks that run when the operator saves the product.

    Variant mode needs at least one option and some stock across them.
    """
    if not state.host.has_variants:
        if state.host.stock_quantity < 0:
            return _reject(
                ReasonCode.INVALID_STOCK,
                "Product stock cannot be negative.",
                "validate_for_save",
            )
        return None

    if not state.options:
        return _reject(
            ReasonCode.NO_VARIANT_OPTIONS,
            "Add at least one dimension so that options are generated.",
            "validate_for_save",
        )
    if total_stock(state.options) <= 0:
        return _reject(
            ReasonCode.NO_VARIANT_STOCK,
            "At least one option must have stock.",
            "validate_for_save",
        )
    return None


__all__ = [
    "Policy",
    "VARIANT_POLICIES",
    "evaluate_policies",
    "variants_enabled_policy",
    "host_stock_read_only_policy",
    "dimension_exists_policy",
    "dimension_name_policy",
    "dimension_values_policy",
    "combination_limit_policy",
    "option_exists_policy",
    "option_update_policy",
    "bulk_edit_policy",
    "validate_for_save",
]
