"""
Catalog Variant Engine - Request Commands
============================================
Typed editor requests that convert into canonical Command objects.

Requests check shape only (types, identifiers). Content rules such as
"dimension names are unique" live in the policies, so that a bad edit
comes back as a REJECTED outcome instead of an exception.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from core.commands.base import Command
from engines.variants.bulk import BulkField, coerce_field
from engines.variants.models import PREDEFINED_DIMENSIONS, ValueDetail


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

VARIANTS_DIMENSION_ADD_REQUEST = "variants.dimension.add.request"
VARIANTS_DIMENSION_REMOVE_REQUEST = "variants.dimension.remove.request"
VARIANTS_DIMENSION_EDIT_VALUES_REQUEST = "variants.dimension.edit_values.request"
VARIANTS_OPTION_UPDATE_REQUEST = "variants.option.update.request"
VARIANTS_OPTION_BULK_EDIT_REQUEST = "variants.option.bulk_edit.request"
VARIANTS_PRODUCT_TOGGLE_REQUEST = "variants.product.toggle.request"
VARIANTS_PRODUCT_SET_STOCK_REQUEST = "variants.product.set_stock.request"

VARIANTS_COMMAND_TYPES = frozenset({
    VARIANTS_DIMENSION_ADD_REQUEST,
    VARIANTS_DIMENSION_REMOVE_REQUEST,
    VARIANTS_DIMENSION_EDIT_VALUES_REQUEST,
    VARIANTS_OPTION_UPDATE_REQUEST,
    VARIANTS_OPTION_BULK_EDIT_REQUEST,
    VARIANTS_PRODUCT_TOGGLE_REQUEST,
    VARIANTS_PRODUCT_SET_STOCK_REQUEST,
})

# Edits that change the dimension structure and force regeneration.
STRUCTURAL_COMMAND_TYPES = frozenset({
    VARIANTS_DIMENSION_ADD_REQUEST,
    VARIANTS_DIMENSION_REMOVE_REQUEST,
    VARIANTS_DIMENSION_EDIT_VALUES_REQUEST,
})


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def _value_entry(raw) -> dict:
    """
    Normalize one value given as a string, a dict or a ValueDetail
    into a plain payload dict. Content is not validated here.
    """
    if isinstance(raw, ValueDetail):
        return {
            "value": raw.value,
            "stock_quantity": raw.stock_quantity,
            "custom_price": raw.custom_price,
        }
    if isinstance(raw, str):
        return {"value": raw, "stock_quantity": None, "custom_price": None}
    if isinstance(raw, dict):
        return {
            "value": raw.get("value"),
            "stock_quantity": raw.get("stock_quantity"),
            "custom_price": raw.get("custom_price"),
        }
    raise TypeError(
        f"value must be str, dict or ValueDetail, got {type(raw).__name__}."
    )


def _value_entries(values: Iterable) -> Tuple[dict, ...]:
    if values is None or isinstance(values, (str, bytes)):
        raise TypeError("values must be an iterable of values, not a string.")
    return tuple(_value_entry(v) for v in values)


def _command(
    command_type: str,
    payload: dict,
    *,
    product_id: str,
    actor_type: str,
    actor_id: str,
    command_id: uuid.UUID,
    correlation_id: uuid.UUID,
    issued_at: datetime,
) -> Command:
    return Command(
        command_id=command_id,
        command_type=command_type,
        product_id=product_id,
        actor_type=actor_type,
        actor_id=actor_id,
        payload=payload,
        issued_at=issued_at,
        correlation_id=correlation_id,
        source_engine="variants",
    )


# ══════════════════════════════════════════════════════════════
# DIMENSION REQUESTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AddDimensionRequest:
    """Add a dimension (e.g. Color) with its values. Triggers regeneration."""
    name: str
    values: Tuple = ()
    is_required: bool = True
    dimension_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeError("name must be a string.")
        object.__setattr__(self, "values", _value_entries(self.values))

    @classmethod
    def from_preset(
        cls,
        preset_name: str,
        values: Optional[Iterable[str]] = None,
    ) -> AddDimensionRequest:
        """
        Build from PREDEFINED_DIMENSIONS. values narrows the preset
        to a subset; by default every preset value is used.
        """
        if preset_name not in PREDEFINED_DIMENSIONS:
            raise ValueError(
                f"Unknown preset '{preset_name}'. "
                f"Known: {sorted(PREDEFINED_DIMENSIONS)}"
            )
        preset = PREDEFINED_DIMENSIONS[preset_name]
        chosen = tuple(values) if values is not None else preset
        unknown = [v for v in chosen if v not in preset]
        if unknown:
            raise ValueError(f"Values {unknown} are not part of preset '{preset_name}'.")
        return cls(name=preset_name, values=chosen)

    def to_command(self, **kwargs) -> Command:
        return _command(
            VARIANTS_DIMENSION_ADD_REQUEST,
            {
                "dimension_id": self.dimension_id,
                "name": self.name,
                "values": [dict(v) for v in self.values],
                "is_required": self.is_required,
            },
            **kwargs,
        )


@dataclass(frozen=True)
class RemoveDimensionRequest:
    """Remove a dimension. Triggers regeneration."""
    dimension_id: str

    def __post_init__(self):
        if not self.dimension_id:
            raise ValueError("dimension_id must be non-empty.")

    def to_command(self, **kwargs) -> Command:
        return _command(
            VARIANTS_DIMENSION_REMOVE_REQUEST,
            {"dimension_id": self.dimension_id},
            **kwargs,
        )


@dataclass(frozen=True)
class EditDimensionValuesRequest:
    """
    Replace a dimension's value set (and optionally rename it).

    This is also how per-option figures survive regeneration: stock and
    price written into the value details are picked up by the resolvers.
    """
    dimension_id: str
    values: Tuple = ()
    name: Optional[str] = None
    is_required: Optional[bool] = None

    def __post_init__(self):
        if not self.dimension_id:
            raise ValueError("dimension_id must be non-empty.")
        if self.name is not None and not isinstance(self.name, str):
            raise TypeError("name must be a string.")
        object.__setattr__(self, "values", _value_entries(self.values))

    def to_command(self, **kwargs) -> Command:
        return _command(
            VARIANTS_DIMENSION_EDIT_VALUES_REQUEST,
            {
                "dimension_id": self.dimension_id,
                "name": self.name,
                "values": [dict(v) for v in self.values],
                "is_required": self.is_required,
            },
            **kwargs,
        )


# ══════════════════════════════════════════════════════════════
# OPTION REQUESTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class UpdateOptionRequest:
    """
    Manual edit of one generated option. None leaves a field as is;
    clear_price=True removes the price. Lost at the next regeneration.
    """
    option_id: str
    price: Optional[Decimal] = None
    stock_quantity: Optional[int] = None
    sku: Optional[str] = None
    images: Optional[Tuple[str, ...]] = None
    clear_price: bool = False

    def __post_init__(self):
        if not self.option_id:
            raise ValueError("option_id must be non-empty.")
        if self.clear_price and self.price is not None:
            raise ValueError("price and clear_price are mutually exclusive.")
        if self.images is not None:
            object.__setattr__(self, "images", tuple(self.images))

    def to_command(self, **kwargs) -> Command:
        return _command(
            VARIANTS_OPTION_UPDATE_REQUEST,
            {
                "option_id": self.option_id,
                "price": self.price,
                "stock_quantity": self.stock_quantity,
                "sku": self.sku,
                "images": list(self.images) if self.images is not None else None,
                "clear_price": self.clear_price,
            },
            **kwargs,
        )


@dataclass(frozen=True)
class BulkEditRequest:
    """Set price or stock on a caller-managed selection of options."""
    selected_ids: frozenset = frozenset()
    field: BulkField = BulkField.PRICE
    value: object = None

    def __post_init__(self):
        object.__setattr__(self, "selected_ids", frozenset(self.selected_ids or ()))
        object.__setattr__(self, "field", coerce_field(self.field))

    def to_command(self, **kwargs) -> Command:
        return _command(
            VARIANTS_OPTION_BULK_EDIT_REQUEST,
            {
                "selected_ids": sorted(self.selected_ids),
                "field": self.field.value,
                "value": self.value,
            },
            **kwargs,
        )


# ══════════════════════════════════════════════════════════════
# HOST PRODUCT REQUESTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ToggleVariantsRequest:
    """Enable or disable variant mode. Disabling drops every dimension and option."""
    enabled: bool

    def __post_init__(self):
        if not isinstance(self.enabled, bool):
            raise TypeError("enabled must be bool.")

    def to_command(self, **kwargs) -> Command:
        return _command(
            VARIANTS_PRODUCT_TOGGLE_REQUEST,
            {"enabled": self.enabled},
            **kwargs,
        )


@dataclass(frozen=True)
class SetProductStockRequest:
    """Operator write to the scalar stock field (rejected in variant mode)."""
    stock_quantity: int

    def to_command(self, **kwargs) -> Command:
        return _command(
            VARIANTS_PRODUCT_SET_STOCK_REQUEST,
            {"stock_quantity": self.stock_quantity},
            **kwargs,
        )
