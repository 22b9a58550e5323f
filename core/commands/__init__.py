"""
Catalog Command Layer
========================
Every editor action begins as a Command.
Every Command produces exactly one Outcome.
REJECTED commands carry a structured reason and mutate nothing.
"""

from core.commands.base import (
    Command,
    VALID_ACTOR_TYPES,
    derive_rejection_event_type,
    derive_source_engine,
)
from core.commands.outcomes import (
    CommandOutcome,
    CommandStatus,
)
from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    # ── Base ──────────────────────────────────────────────────
    "Command",
    "VALID_ACTOR_TYPES",
    "derive_rejection_event_type",
    "derive_source_engine",
    # ── Outcomes ──────────────────────────────────────────────
    "CommandOutcome",
    "CommandStatus",
    # ── Rejection ─────────────────────────────────────────────
    "RejectionReason",
    "ReasonCode",
]
