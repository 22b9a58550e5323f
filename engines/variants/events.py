"""
Catalog Variant Engine - Event Types and Payload Builders
============================================================
Engine: Variants

Every accepted editor command is described by one event. The engine
does not store events; the enclosing application decides what to do
with them (audit trail, cache invalidation, storefront refresh).
"""

from __future__ import annotations

from decimal import Decimal

from core.commands.base import Command


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

VARIANTS_DIMENSION_ADDED_V1 = "variants.dimension.added.v1"
VARIANTS_DIMENSION_REMOVED_V1 = "variants.dimension.removed.v1"
VARIANTS_DIMENSION_VALUES_EDITED_V1 = "variants.dimension.values_edited.v1"
VARIANTS_OPTION_UPDATED_V1 = "variants.option.updated.v1"
VARIANTS_OPTION_BULK_EDITED_V1 = "variants.option.bulk_edited.v1"
VARIANTS_PRODUCT_TOGGLED_V1 = "variants.product.toggled.v1"
VARIANTS_PRODUCT_STOCK_SET_V1 = "variants.product.stock_set.v1"

VARIANTS_EVENT_TYPES = (
    VARIANTS_DIMENSION_ADDED_V1,
    VARIANTS_DIMENSION_REMOVED_V1,
    VARIANTS_DIMENSION_VALUES_EDITED_V1,
    VARIANTS_OPTION_UPDATED_V1,
    VARIANTS_OPTION_BULK_EDITED_V1,
    VARIANTS_PRODUCT_TOGGLED_V1,
    VARIANTS_PRODUCT_STOCK_SET_V1,
)


# ══════════════════════════════════════════════════════════════
# COMMAND → EVENT MAPPING
# ══════════════════════════════════════════════════════════════

COMMAND_TO_EVENT_TYPE = {
    "variants.dimension.add.request": VARIANTS_DIMENSION_ADDED_V1,
    "variants.dimension.remove.request": VARIANTS_DIMENSION_REMOVED_V1,
    "variants.dimension.edit_values.request": VARIANTS_DIMENSION_VALUES_EDITED_V1,
    "variants.option.update.request": VARIANTS_OPTION_UPDATED_V1,
    "variants.option.bulk_edit.request": VARIANTS_OPTION_BULK_EDITED_V1,
    "variants.product.toggle.request": VARIANTS_PRODUCT_TOGGLED_V1,
    "variants.product.set_stock.request": VARIANTS_PRODUCT_STOCK_SET_V1,
}


def resolve_variants_event_type(command_type: str) -> str | None:
    return COMMAND_TO_EVENT_TYPE.get(command_type)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def _plain(value):
    if isinstance(value, Decimal):
        return str(value)
    return value


def _plain_values(values) -> list:
    return [
        {key: _plain(item) for key, item in entry.items()}
        for entry in values
    ]


def _base_payload(command: Command) -> dict:
    return {
        "product_id": command.product_id,
        "actor_id": command.actor_id,
        "actor_type": command.actor_type,
        "correlation_id": command.correlation_id,
        "command_id": command.command_id,
    }


def build_dimension_added_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "dimension_id": command.payload.get("dimension_id"),
        "name": command.payload["name"],
        "values": _plain_values(command.payload["values"]),
        "is_required": command.payload.get("is_required", True),
        "added_at": command.issued_at,
    })
    return payload


def build_dimension_removed_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "dimension_id": command.payload["dimension_id"],
        "removed_at": command.issued_at,
    })
    return payload


def build_dimension_values_edited_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "dimension_id": command.payload["dimension_id"],
        "name": command.payload.get("name"),
        "values": _plain_values(command.payload["values"]),
        "is_required": command.payload.get("is_required"),
        "edited_at": command.issued_at,
    })
    return payload


def build_option_updated_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "option_id": command.payload["option_id"],
        "price": _plain(command.payload.get("price")),
        "clear_price": command.payload.get("clear_price", False),
        "stock_quantity": command.payload.get("stock_quantity"),
        "sku": command.payload.get("sku"),
        "images": command.payload.get("images"),
        "updated_at": command.issued_at,
    })
    return payload


def build_option_bulk_edited_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "selected_ids": list(command.payload["selected_ids"]),
        "field": command.payload["field"],
        "value": _plain(command.payload["value"]),
        "edited_at": command.issued_at,
    })
    return payload


def build_product_toggled_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "enabled": command.payload["enabled"],
        "toggled_at": command.issued_at,
    })
    return payload


def build_product_stock_set_payload(command: Command) -> dict:
    payload = _base_payload(command)
    payload.update({
        "stock_quantity": command.payload["stock_quantity"],
        "set_at": command.issued_at,
    })
    return payload


def build_rejection_payload(command: Command, reason, rejected_at) -> dict:
    payload = _base_payload(command)
    payload.update({
        "command_type": command.command_type,
        "reason": reason.to_dict(),
        "rejected_at": rejected_at,
    })
    return payload
