"""
Catalog Variant Engine - Value Objects
=========================================
Engine: Variants
Authority: Variant matrix doctrine

The records the engine computes over. All of them are immutable
snapshots; every edit produces a new snapshot.

RULES (NON-NEGOTIABLE):
- Prices are Decimal (never float), stock is a non-negative int
- Dimension names are unique within a product
- Values are unique within their dimension
- VariantOption is only ever produced by the generator
- ProductVariantState is owned by the caller, never by the engine

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Optional, Tuple


Assignment = Tuple[Tuple[str, str], ...]


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def to_decimal(value, field_name: str) -> Optional[Decimal]:
    """Coerce int/str/Decimal to a finite Decimal. None passes through."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"{field_name} must be numeric, got bool.")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"{field_name} '{value}' is not a number.") from None
    else:
        raise TypeError(f"{field_name} must be numeric, got {type(value).__name__}.")
    if not number.is_finite():
        raise ValueError(f"{field_name} must be a finite number, got {value}.")
    return number


def _check_stock(value, field_name: str) -> None:
    if value is None:
        return
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{field_name} must be int, got {type(value).__name__}.")
    if value < 0:
        raise ValueError(f"{field_name} cannot be negative, got {value}.")


def _check_price(value: Optional[Decimal], field_name: str) -> None:
    if value is not None and value < 0:
        raise ValueError(f"{field_name} cannot be negative, got {value}.")


# ══════════════════════════════════════════════════════════════
# VALUE DETAIL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ValueDetail:
    """
    One selectable value of a dimension, with its own stock and price.

    stock_quantity=None means "no stock data" (ignored by the Stock
    Aggregator). custom_price=None means "no explicit price".
    """
    value: str
    stock_quantity: Optional[int] = None
    custom_price: Optional[Decimal] = None

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("value must be a non-empty string.")
        object.__setattr__(self, "value", self.value.strip())
        _check_stock(self.stock_quantity, "stock_quantity")
        object.__setattr__(
            self, "custom_price", to_decimal(self.custom_price, "custom_price"),
        )
        _check_price(self.custom_price, "custom_price")

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "stock_quantity": self.stock_quantity,
            "custom_price": (
                str(self.custom_price) if self.custom_price is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data) -> ValueDetail:
        if isinstance(data, str):
            return cls(value=data)
        return cls(
            value=data["value"],
            stock_quantity=data.get("stock_quantity"),
            custom_price=data.get("custom_price"),
        )


# ══════════════════════════════════════════════════════════════
# VARIANT DIMENSION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VariantDimension:
    """
    A named product attribute with an ordered set of values (e.g. Color).

    stock_quantity / custom_price are legacy dimension-level figures,
    consulted only for values that carry no figure of their own.
    """
    dimension_id: str
    name: str
    values: Tuple[ValueDetail, ...]
    order: int = 0
    is_required: bool = True
    stock_quantity: Optional[int] = None
    custom_price: Optional[Decimal] = None

    def __post_init__(self):
        if not self.dimension_id:
            raise ValueError("dimension_id must be non-empty.")
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Dimension name must be non-empty.")
        object.__setattr__(self, "name", self.name.strip())

        values = tuple(
            v if isinstance(v, ValueDetail) else ValueDetail.from_dict(v)
            for v in self.values
        )
        if not values:
            raise ValueError(f"Dimension '{self.name}' must have at least one value.")
        seen = set()
        for detail in values:
            if detail.value in seen:
                raise ValueError(
                    f"Duplicate value '{detail.value}' in dimension '{self.name}'."
                )
            seen.add(detail.value)
        object.__setattr__(self, "values", values)

        _check_stock(self.stock_quantity, "stock_quantity")
        object.__setattr__(
            self, "custom_price", to_decimal(self.custom_price, "custom_price"),
        )
        _check_price(self.custom_price, "custom_price")

    @property
    def value_names(self) -> Tuple[str, ...]:
        return tuple(v.value for v in self.values)

    def detail_for(self, value: str) -> Optional[ValueDetail]:
        for detail in self.values:
            if detail.value == value:
                return detail
        return None

    def to_dict(self) -> dict:
        return {
            "dimension_id": self.dimension_id,
            "name": self.name,
            "order": self.order,
            "is_required": self.is_required,
            "values": [v.to_dict() for v in self.values],
            "stock_quantity": self.stock_quantity,
            "custom_price": (
                str(self.custom_price) if self.custom_price is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> VariantDimension:
        """
        Accepts the structured shape ({"values": [{"value": ...}, ...]})
        and the older shape that only lists value strings.
        """
        raw_values = data.get("value_details") or data.get("values") or ()
        return cls(
            dimension_id=data["dimension_id"],
            name=data["name"],
            values=tuple(ValueDetail.from_dict(v) for v in raw_values),
            order=data.get("order", 0),
            is_required=data.get("is_required", True),
            stock_quantity=data.get("stock_quantity"),
            custom_price=data.get("custom_price"),
        )


# ══════════════════════════════════════════════════════════════
# VARIANT OPTION (generated, never hand-created)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VariantOption:
    """
    One fully specified combination: one value per dimension.

    value_assignment is ordered by dimension order. combination_key is
    the order-independent identity used for lookups; label is for display.
    """
    option_id: str
    label: str
    value_assignment: Assignment
    sku: str
    stock_quantity: int = 0
    price: Optional[Decimal] = None
    images: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.option_id:
            raise ValueError("option_id must be non-empty.")
        if not self.value_assignment:
            raise ValueError("value_assignment must be non-empty.")
        object.__setattr__(
            self, "value_assignment",
            tuple((str(d), str(v)) for d, v in self.value_assignment),
        )
        _check_stock(self.stock_quantity, "stock_quantity")
        object.__setattr__(self, "price", to_decimal(self.price, "price"))
        _check_price(self.price, "price")
        object.__setattr__(self, "images", tuple(self.images))

    @property
    def assignment(self) -> Dict[str, str]:
        return dict(self.value_assignment)

    @property
    def combination_key(self) -> Assignment:
        return tuple(sorted(self.value_assignment))

    @property
    def dimension_names(self) -> Tuple[str, ...]:
        return tuple(d for d, _ in self.value_assignment)

    def value_for(self, dimension_name: str) -> Optional[str]:
        return self.assignment.get(dimension_name)

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0


# ══════════════════════════════════════════════════════════════
# HOST PRODUCT (external record, partially owned)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class HostProduct:
    """
    The slice of the external product record the engine reads and writes.

    stock_quantity is authoritative only while has_variants is False.
    base_price is the marketer price used as the option price fallback.
    """
    product_id: str
    has_variants: bool = False
    stock_quantity: int = 0
    base_price: Optional[Decimal] = None

    def __post_init__(self):
        if not self.product_id:
            raise ValueError("product_id must be non-empty.")
        _check_stock(self.stock_quantity, "stock_quantity")
        object.__setattr__(self, "base_price", to_decimal(self.base_price, "base_price"))
        _check_price(self.base_price, "base_price")


# ══════════════════════════════════════════════════════════════
# PRODUCT VARIANT STATE (caller-owned snapshot)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProductVariantState:
    """Everything the editor operates on, passed in and returned explicitly."""
    host: HostProduct
    dimensions: Tuple[VariantDimension, ...] = ()
    options: Tuple[VariantOption, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "dimensions", tuple(self.dimensions))
        object.__setattr__(self, "options", tuple(self.options))
        names = [d.name for d in self.dimensions]
        if len(names) != len(set(names)):
            raise ValueError("Dimension names must be unique within a product.")

    @classmethod
    def for_product(
        cls,
        product_id: str,
        *,
        base_price=None,
        stock_quantity: int = 0,
    ) -> ProductVariantState:
        return cls(host=HostProduct(
            product_id=product_id,
            stock_quantity=stock_quantity,
            base_price=base_price,
        ))

    @property
    def product_id(self) -> str:
        return self.host.product_id

    def dimension_named(self, name: str) -> Optional[VariantDimension]:
        for dimension in self.dimensions:
            if dimension.name == name:
                return dimension
        return None

    def dimension_by_id(self, dimension_id: str) -> Optional[VariantDimension]:
        for dimension in self.dimensions:
            if dimension.dimension_id == dimension_id:
                return dimension
        return None

    def option_by_id(self, option_id: str) -> Optional[VariantOption]:
        for option in self.options:
            if option.option_id == option_id:
                return option
        return None

    def option_ids(self) -> Tuple[str, ...]:
        return tuple(o.option_id for o in self.options)


# ══════════════════════════════════════════════════════════════
# PRESETS
# ══════════════════════════════════════════════════════════════

PREDEFINED_DIMENSIONS: Dict[str, Tuple[str, ...]] = {
    "Color": (
        "Red", "Blue", "Green", "Yellow", "Black",
        "White", "Gray", "Brown", "Orange", "Purple",
    ),
    "Size": ("XS", "S", "M", "L", "XL", "XXL", "XXXL"),
    "Material": (
        "Cotton", "Polyester", "Silk", "Wool",
        "Leather", "Plastic", "Metal", "Wood",
    ),
    "Style": ("Classic", "Modern", "Sport", "Elegant", "Casual", "Formal"),
}


def value_details(values: Iterable) -> Tuple[ValueDetail, ...]:
    """Build ValueDetails from strings, dicts, or ValueDetails."""
    return tuple(
        v if isinstance(v, ValueDetail) else ValueDetail.from_dict(v)
        for v in values
    )
