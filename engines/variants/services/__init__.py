"""
Catalog Variant Engine - Application Service
===============================================
Orchestrates editor commands → policies → regeneration → event.

The service holds no product state. Every call takes the current
ProductVariantState and returns the next one; on rejection the very
same state object comes back.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Sequence

from core.commands.base import Command, derive_rejection_event_type
from core.commands.outcomes import CommandOutcome
from core.commands.rejection import ReasonCode, RejectionReason
from core.config.rules import ConfigStore, InMemoryConfigStore, VariantRules
from core.time.clock import Clock, get_default_clock
from engines.variants.bulk import apply_bulk
from engines.variants.combinations import generate, sync_host_stock
from engines.variants.commands import (
    VARIANTS_COMMAND_TYPES,
    VARIANTS_DIMENSION_ADD_REQUEST,
    VARIANTS_DIMENSION_EDIT_VALUES_REQUEST,
    VARIANTS_DIMENSION_REMOVE_REQUEST,
    VARIANTS_OPTION_BULK_EDIT_REQUEST,
    VARIANTS_OPTION_UPDATE_REQUEST,
    VARIANTS_PRODUCT_SET_STOCK_REQUEST,
    VARIANTS_PRODUCT_TOGGLE_REQUEST,
    AddDimensionRequest,
    BulkEditRequest,
    EditDimensionValuesRequest,
    RemoveDimensionRequest,
)
from engines.variants.events import (
    build_dimension_added_payload,
    build_dimension_removed_payload,
    build_dimension_values_edited_payload,
    build_option_bulk_edited_payload,
    build_option_updated_payload,
    build_product_stock_set_payload,
    build_product_toggled_payload,
    build_rejection_payload,
    resolve_variants_event_type,
)
from engines.variants.matcher import MatchResult, StockStatus, resolve, stock_status
from engines.variants.models import (
    ProductVariantState,
    VariantDimension,
    VariantOption,
    value_details,
)
from engines.variants.policies import evaluate_policies, validate_for_save
from engines.variants.sku import generate_product_sku

logger = logging.getLogger("catalog.variants")
command_logger = logging.getLogger("catalog.commands")


# ══════════════════════════════════════════════════════════════
# PAYLOAD DISPATCHER
# ══════════════════════════════════════════════════════════════

PAYLOAD_BUILDERS = {
    VARIANTS_DIMENSION_ADD_REQUEST: build_dimension_added_payload,
    VARIANTS_DIMENSION_REMOVE_REQUEST: build_dimension_removed_payload,
    VARIANTS_DIMENSION_EDIT_VALUES_REQUEST: build_dimension_values_edited_payload,
    VARIANTS_OPTION_UPDATE_REQUEST: build_option_updated_payload,
    VARIANTS_OPTION_BULK_EDIT_REQUEST: build_option_bulk_edited_payload,
    VARIANTS_PRODUCT_TOGGLE_REQUEST: build_product_toggled_payload,
    VARIANTS_PRODUCT_SET_STOCK_REQUEST: build_product_stock_set_payload,
}


# ══════════════════════════════════════════════════════════════
# EXECUTION RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VariantExecutionResult:
    outcome: CommandOutcome
    state: ProductVariantState
    event_type: str
    payload: dict

    @property
    def accepted(self) -> bool:
        return self.outcome.is_accepted

    @property
    def reason(self) -> Optional[RejectionReason]:
        return self.outcome.reason


# ══════════════════════════════════════════════════════════════
# APPLICATION SERVICE
# ══════════════════════════════════════════════════════════════

class VariantService:
    """
    Variant Engine application service.

    Orchestrates:
    1. Command → Event type resolution
    2. Policy evaluation (first rejection wins)
    3. State transition (regeneration for structural edits)
    4. Host stock synchronisation
    5. Payload building
    """

    def __init__(
        self,
        *,
        config_store: ConfigStore | None = None,
        clock: Clock | None = None,
    ):
        self._config_store = config_store or InMemoryConfigStore()
        self._clock = clock
        self._handlers = {
            VARIANTS_DIMENSION_ADD_REQUEST: self._add_dimension,
            VARIANTS_DIMENSION_REMOVE_REQUEST: self._remove_dimension,
            VARIANTS_DIMENSION_EDIT_VALUES_REQUEST: self._edit_dimension_values,
            VARIANTS_OPTION_UPDATE_REQUEST: self._update_option,
            VARIANTS_OPTION_BULK_EDIT_REQUEST: self._bulk_edit,
            VARIANTS_PRODUCT_TOGGLE_REQUEST: self._toggle_variants,
            VARIANTS_PRODUCT_SET_STOCK_REQUEST: self._set_product_stock,
        }

    @property
    def clock(self) -> Clock:
        return self._clock or get_default_clock()

    def rules_for(self, product_id: str) -> VariantRules:
        return self._config_store.get_variant_rules(product_id)

    # ── Command execution ─────────────────────────────────────

    def execute(
        self,
        command: Command,
        state: ProductVariantState,
    ) -> VariantExecutionResult:
        if command.command_type not in VARIANTS_COMMAND_TYPES:
            raise ValueError(
                f"Unsupported variants command type: {command.command_type}"
            )

        event_type = resolve_variants_event_type(command.command_type)
        if event_type is None:
            raise ValueError(
                f"No event type for: {command.command_type}"
            )

        if command.product_id != state.product_id:
            return self._rejected(command, state, RejectionReason(
                code=ReasonCode.PRODUCT_MISMATCH,
                message=(
                    f"Command targets product {command.product_id}, "
                    f"state belongs to {state.product_id}."
                ),
                policy_name="product_scope_policy",
            ))

        rules = self.rules_for(state.product_id)
        reason = evaluate_policies(command, state, rules)
        if reason is not None:
            return self._rejected(command, state, reason)

        next_state = self._handlers[command.command_type](command, state, rules)
        if isinstance(next_state, RejectionReason):
            return self._rejected(command, state, next_state)

        command_logger.debug(
            f"Accepted {command.command_type} for product {state.product_id}"
        )
        return VariantExecutionResult(
            outcome=CommandOutcome.accepted(command.command_id, self.clock.now_utc()),
            state=next_state,
            event_type=event_type,
            payload=PAYLOAD_BUILDERS[command.command_type](command),
        )

    def submit(
        self,
        request,
        state: ProductVariantState,
        *,
        actor_id: str,
        actor_type: str = "HUMAN",
        correlation_id: uuid.UUID | None = None,
    ) -> VariantExecutionResult:
        """Build a Command from a request DTO and execute it."""
        command = request.to_command(
            product_id=state.product_id,
            actor_type=actor_type,
            actor_id=actor_id,
            command_id=uuid.uuid4(),
            correlation_id=correlation_id or uuid.uuid4(),
            issued_at=self.clock.now_utc(),
        )
        return self.execute(command, state)

    # ── Convenience wrappers ──────────────────────────────────

    def add_dimension(
        self,
        state: ProductVariantState,
        name: str,
        values: Sequence,
        *,
        actor_id: str,
        is_required: bool = True,
    ) -> VariantExecutionResult:
        return self.submit(
            AddDimensionRequest(name=name, values=tuple(values), is_required=is_required),
            state,
            actor_id=actor_id,
        )

    def remove_dimension(
        self,
        state: ProductVariantState,
        dimension_id: str,
        *,
        actor_id: str,
    ) -> VariantExecutionResult:
        return self.submit(
            RemoveDimensionRequest(dimension_id=dimension_id), state, actor_id=actor_id,
        )

    def edit_dimension_values(
        self,
        state: ProductVariantState,
        dimension_id: str,
        values: Sequence,
        *,
        actor_id: str,
        name: Optional[str] = None,
    ) -> VariantExecutionResult:
        return self.submit(
            EditDimensionValuesRequest(
                dimension_id=dimension_id, values=tuple(values), name=name,
            ),
            state,
            actor_id=actor_id,
        )

    def bulk_edit(
        self,
        state: ProductVariantState,
        selected_ids,
        field,
        value: Any,
        *,
        actor_id: str,
    ) -> VariantExecutionResult:
        return self.submit(
            BulkEditRequest(selected_ids=frozenset(selected_ids), field=field, value=value),
            state,
            actor_id=actor_id,
        )

    # ── Storefront / save helpers ─────────────────────────────

    def match(
        self,
        state: ProductVariantState,
        selection: Mapping[str, str],
    ) -> MatchResult:
        return resolve(state.options, state.dimensions, selection)

    def stock_status(
        self,
        state: ProductVariantState,
        option: VariantOption,
    ) -> StockStatus:
        rules = self.rules_for(state.product_id)
        return stock_status(option, rules.low_stock_threshold)

    def validate_for_save(self, state: ProductVariantState) -> Optional[RejectionReason]:
        return validate_for_save(state)

    def product_sku(self, product_id: str, name: Optional[str]) -> str:
        rules = self.rules_for(product_id)
        return generate_product_sku(
            name, clock=self.clock, fallback=rules.product_sku_fallback,
        )

    # ── Internals ─────────────────────────────────────────────

    def _rejected(
        self,
        command: Command,
        state: ProductVariantState,
        reason: RejectionReason,
    ) -> VariantExecutionResult:
        occurred_at = self.clock.now_utc()
        command_logger.warning(
            f"Rejected {command.command_type} for product {command.product_id}: "
            f"{reason.code} ({reason.policy_name})"
        )
        return VariantExecutionResult(
            outcome=CommandOutcome.rejected(command.command_id, reason, occurred_at),
            state=state,
            event_type=derive_rejection_event_type(command.command_type),
            payload=build_rejection_payload(command, reason, occurred_at),
        )

    def _regenerate(
        self,
        state: ProductVariantState,
        dimensions: Sequence[VariantDimension],
        rules: VariantRules,
    ) -> ProductVariantState:
        dimensions = tuple(dimensions)
        options = generate(
            dimensions,
            state.host.base_price,
            clock=self.clock,
            max_combinations=rules.max_combinations,
            sku_prefix=rules.option_sku_prefix,
        )
        host = sync_host_stock(state.host, options)
        logger.info(
            f"Regenerated {len(options)} options for product {state.product_id} "
            f"(host stock {host.stock_quantity})"
        )
        return ProductVariantState(host=host, dimensions=dimensions, options=tuple(options))

    def _with_options(
        self,
        state: ProductVariantState,
        options: Sequence[VariantOption],
    ) -> ProductVariantState:
        options = tuple(options)
        return replace(state, options=options, host=sync_host_stock(state.host, options))

    # ── Handlers ──────────────────────────────────────────────

    def _add_dimension(self, command, state, rules):
        payload = command.payload
        dimension = VariantDimension(
            dimension_id=(
                payload.get("dimension_id")
                or f"DIM-{command.command_id.hex[:8].upper()}"
            ),
            name=payload["name"],
            values=value_details(payload["values"]),
            order=len(state.dimensions),
            is_required=payload.get("is_required", True),
        )
        return self._regenerate(state, state.dimensions + (dimension,), rules)

    def _remove_dimension(self, command, state, rules):
        dimension_id = command.payload["dimension_id"]
        kept = [d for d in state.dimensions if d.dimension_id != dimension_id]
        dimensions = [replace(d, order=i) for i, d in enumerate(kept)]
        return self._regenerate(state, dimensions, rules)

    def _edit_dimension_values(self, command, state, rules):
        payload = command.payload
        dimension_id = payload["dimension_id"]
        dimensions = []
        for dimension in state.dimensions:
            if dimension.dimension_id == dimension_id:
                changes = {"values": value_details(payload["values"])}
                if payload.get("name") is not None:
                    changes["name"] = payload["name"]
                if payload.get("is_required") is not None:
                    changes["is_required"] = payload["is_required"]
                dimension = replace(dimension, **changes)
            dimensions.append(dimension)
        return self._regenerate(state, dimensions, rules)

    def _update_option(self, command, state, rules):
        payload = command.payload
        options = []
        for option in state.options:
            if option.option_id == payload["option_id"]:
                changes = {}
                if payload.get("clear_price"):
                    changes["price"] = None
                elif payload.get("price") is not None:
                    changes["price"] = payload["price"]
                if payload.get("stock_quantity") is not None:
                    changes["stock_quantity"] = payload["stock_quantity"]
                if payload.get("sku") is not None:
                    changes["sku"] = payload["sku"].strip().upper()
                if payload.get("images") is not None:
                    changes["images"] = tuple(payload["images"])
                option = replace(option, **changes)
            options.append(option)
        return self._with_options(state, options)

    def _bulk_edit(self, command, state, rules):
        payload = command.payload
        result = apply_bulk(
            state.options, payload["selected_ids"], payload["field"], payload["value"],
        )
        if not result.applied:
            return result.reason
        return self._with_options(state, result.options)

    def _toggle_variants(self, command, state, rules):
        enabled = command.payload["enabled"]
        if enabled == state.host.has_variants:
            return state

        if enabled:
            host = replace(state.host, has_variants=True)
            return replace(state, host=sync_host_stock(host, state.options))

        logger.info(
            f"Variants disabled for product {state.product_id}; "
            f"dropped {len(state.options)} options"
        )
        return ProductVariantState(host=replace(state.host, has_variants=False))

    def _set_product_stock(self, command, state, rules):
        host = replace(state.host, stock_quantity=command.payload["stock_quantity"])
        return replace(state, host=host)
