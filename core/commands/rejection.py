"""
Catalog Command Layer - Rejection Model
==========================================
Structured rejection reasons for denied edits.

A rejection is how a validation failure reaches the caller:
the operation is aborted and nothing is mutated.

Every rejection must be:
- Deterministic (same input → same rejection)
- Machine-readable (code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a rejected edit.

    Fields:
        code:        Machine-readable rejection code (e.g. 'DUPLICATE_VALUE').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        """Serialize for event payload."""
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Dimensions ────────────────────────────────────────────
    EMPTY_DIMENSION_NAME = "EMPTY_DIMENSION_NAME"
    DUPLICATE_DIMENSION = "DUPLICATE_DIMENSION"
    DIMENSION_NOT_FOUND = "DIMENSION_NOT_FOUND"
    NO_VALUES = "NO_VALUES"
    EMPTY_VALUE = "EMPTY_VALUE"
    DUPLICATE_VALUE = "DUPLICATE_VALUE"
    COMBINATION_LIMIT_EXCEEDED = "COMBINATION_LIMIT_EXCEEDED"

    # ── Options ───────────────────────────────────────────────
    OPTION_NOT_FOUND = "OPTION_NOT_FOUND"
    INVALID_SKU = "INVALID_SKU"
    DUPLICATE_SKU = "DUPLICATE_SKU"
    INVALID_STOCK = "INVALID_STOCK"
    INVALID_PRICE = "INVALID_PRICE"

    # ── Bulk edit ─────────────────────────────────────────────
    EMPTY_SELECTION = "EMPTY_SELECTION"
    INVALID_BULK_VALUE = "INVALID_BULK_VALUE"

    # ── Host product ──────────────────────────────────────────
    STOCK_READ_ONLY = "STOCK_READ_ONLY"
    VARIANTS_DISABLED = "VARIANTS_DISABLED"
    NO_VARIANT_OPTIONS = "NO_VARIANT_OPTIONS"
    NO_VARIANT_STOCK = "NO_VARIANT_STOCK"

    # ── Command structure ─────────────────────────────────────
    PRODUCT_MISMATCH = "PRODUCT_MISMATCH"
