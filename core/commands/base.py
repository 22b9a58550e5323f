"""
Catalog Command Layer - Command Base Contract
================================================
Every operator edit to a product's variant matrix begins as a Command.

A Command is a frozen declaration of editor intent.
It carries identity, the target product, and payload. Nothing else.

Rules:
- Immutable once created (frozen dataclass)
- No business logic inside
- command_type must end with '.request'
- command_type follows engine.domain.action.request format

A Command is NOT an event. It is intent awaiting judgment.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime


# ══════════════════════════════════════════════════════════════
# ACTOR TYPES
# ══════════════════════════════════════════════════════════════

VALID_ACTOR_TYPES = frozenset({"HUMAN", "SYSTEM", "IMPORT"})


# ══════════════════════════════════════════════════════════════
# CANONICAL COMMAND
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Command:
    """
    Canonical Command - declaration of editor intent.

    Fields:
        command_id:     Unique identifier (UUID).
        command_type:   Namespaced type ending in '.request'
                        (e.g. 'variants.dimension.add.request').
        product_id:     Host product the edit targets.
        actor_type:     HUMAN | SYSTEM | IMPORT.
        actor_id:       Identity of the operator.
        payload:        Edit data (dict).
        issued_at:      When the command was issued.
        correlation_id: Groups related commands in one editing session.
        source_engine:  Engine that owns the command.

    Example:
        Command(
            command_id=uuid.uuid4(),
            command_type="variants.dimension.add.request",
            product_id="prod-1",
            actor_type="HUMAN",
            actor_id="marketer-7",
            payload={"name": "Color", "values": [...]},
            issued_at=datetime.now(timezone.utc),
            correlation_id=uuid.uuid4(),
            source_engine="variants",
        )
    """

    command_id: uuid.UUID
    command_type: str
    product_id: str
    actor_type: str
    actor_id: str
    payload: dict
    issued_at: datetime
    correlation_id: uuid.UUID
    source_engine: str

    def __post_init__(self):
        # ── command_id must be UUID ───────────────────────────
        if not isinstance(self.command_id, uuid.UUID):
            raise ValueError(
                f"command_id must be UUID, got {type(self.command_id).__name__}"
            )

        # ── command_type must end with .request ───────────────
        if not self.command_type or not isinstance(self.command_type, str):
            raise ValueError("command_type must be a non-empty string.")

        if not self.command_type.endswith(".request"):
            raise ValueError(
                f"command_type '{self.command_type}' must end with "
                f"'.request' (e.g. 'variants.dimension.add.request')."
            )

        parts = self.command_type.split(".")
        if len(parts) < 4:
            raise ValueError(
                f"command_type '{self.command_type}' must follow "
                f"engine.domain.action.request format (minimum 4 segments)."
            )

        # ── source_engine must match first segment ────────────
        if parts[0] != self.source_engine:
            raise ValueError(
                f"command_type namespace '{parts[0]}' does not match "
                f"source_engine '{self.source_engine}'."
            )

        if not self.product_id or not isinstance(self.product_id, str):
            raise ValueError("product_id must be a non-empty string.")

        if self.actor_type not in VALID_ACTOR_TYPES:
            raise ValueError(
                f"actor_type '{self.actor_type}' not valid. "
                f"Must be one of: {sorted(VALID_ACTOR_TYPES)}"
            )

        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")

        if not isinstance(self.payload, dict):
            raise TypeError("payload must be a dict.")

        if not isinstance(self.issued_at, datetime):
            raise ValueError("issued_at must be a datetime.")

        if not isinstance(self.correlation_id, uuid.UUID):
            raise ValueError("correlation_id must be UUID.")


# ══════════════════════════════════════════════════════════════
# EVENT NAMING LAW (derivation helpers)
# ══════════════════════════════════════════════════════════════

def derive_rejection_event_type(command_type: str) -> str:
    """
    Derive rejected event type from command type.

    variants.dimension.add.request → variants.dimension.add.rejected
    """
    if not command_type.endswith(".request"):
        raise ValueError(
            f"Cannot derive rejection event type from "
            f"'{command_type}': must end with '.request'."
        )

    base = command_type[: -len(".request")]
    return f"{base}.rejected"


def derive_source_engine(command_type: str) -> str:
    """variants.option.bulk_edit.request → variants"""
    return command_type.split(".")[0]
