"""
Catalog Variant Engine - SKU Normalizer & Generator
======================================================
Turns free-form dimension names and values (Latin or Arabic)
into SKU tokens, and assembles option / product SKUs.

RULES:
- Every token is non-empty and drawn from [A-Z0-9]
- Every SKU produced here matches ^[A-Z0-9-]+$
- Uniqueness across options comes from the caller passing each
  option's ordinal index, not from this module
- A SKU that fails validation is replaced by a random base-36
  token; the failure is logged, never raised
"""

from __future__ import annotations

import logging
import re
import secrets
import string
import unicodedata
from typing import Iterable, Optional, Tuple

from core.time.clock import Clock, epoch_millis

logger = logging.getLogger("catalog.variants.sku")

SKU_PATTERN = re.compile(r"^[A-Z0-9-]+$")
_NON_TOKEN = re.compile(r"[^A-Z0-9]")
_ARABIC_BLOCK = re.compile(r"[\u0600-\u06FF]")
_BASE36 = string.digits + string.ascii_uppercase

VALUE_TOKEN_LENGTH = 3
PREFIX_TOKEN_LENGTH = 5
VALUE_FALLBACK = "VAR"
PREFIX_FALLBACK = "PROD"
TIMESTAMP_DIGITS = 6
RANDOM_TOKEN_LENGTH = 6


# ══════════════════════════════════════════════════════════════
# TRANSLITERATION
# ══════════════════════════════════════════════════════════════

# Whole words first (longest match wins), then single letters.
_ARABIC_WORDS = {
    "أحمر": "AHMR", "أزرق": "AZRQ", "أخضر": "AKHDR", "أسود": "ASWD",
    "أبيض": "ABYD", "صغير": "SGHIR", "متوسط": "MTWST", "كبير": "KBIR",
    "قطن": "QTN", "حرير": "HRIR", "صوف": "SWF", "رياضي": "RYADY",
}

_ARABIC_LETTERS = {
    "أ": "A", "إ": "I", "آ": "AA", "ا": "A", "ب": "B", "ت": "T", "ث": "TH",
    "ج": "J", "ح": "H", "خ": "KH", "د": "D", "ذ": "TH", "ر": "R", "ز": "Z",
    "س": "S", "ش": "SH", "ص": "S", "ض": "D", "ط": "T", "ظ": "Z", "ع": "A",
    "غ": "GH", "ف": "F", "ق": "Q", "ك": "K", "ل": "L", "م": "M", "ن": "N",
    "ه": "H", "و": "W", "ي": "Y", "ى": "A", "ة": "H", "ئ": "Y", "ء": "A",
}

_LONGEST_WORD = max(len(w) for w in _ARABIC_WORDS)


def transliterate(text: str) -> str:
    """
    Map Arabic script to Latin and fold Latin diacritics (é → e).

    Arabic letters without a mapping become 'X'. Characters of other
    scripts are left in place for normalize() to discard.
    """
    out = []
    i = 0
    while i < len(text):
        for size in range(min(_LONGEST_WORD, len(text) - i), 1, -1):
            word = text[i:i + size]
            if word in _ARABIC_WORDS:
                out.append(_ARABIC_WORDS[word])
                i += size
                break
        else:
            char = text[i]
            if char in _ARABIC_LETTERS:
                out.append(_ARABIC_LETTERS[char])
            elif _ARABIC_BLOCK.match(char):
                out.append("X")
            else:
                out.append(char)
            i += 1

    folded = unicodedata.normalize("NFKD", "".join(out))
    return "".join(c for c in folded if not unicodedata.combining(c))


# ══════════════════════════════════════════════════════════════
# NORMALIZER
# ══════════════════════════════════════════════════════════════

def normalize(
    text: Optional[str],
    max_length: int = VALUE_TOKEN_LENGTH,
    fallback: str = VALUE_FALLBACK,
) -> str:
    """
    Reduce text to an uppercase [A-Z0-9] token of at most max_length.

    Returns fallback when nothing survives. Never returns "".
    """
    if max_length < 1:
        raise ValueError(f"max_length must be >= 1, got {max_length}.")
    token = _NON_TOKEN.sub("", transliterate(text or "").upper())[:max_length]
    return token or fallback


def normalize_prefix(text: Optional[str], fallback: str = PREFIX_FALLBACK) -> str:
    """Token for a name-derived prefix (dimension or product name)."""
    return normalize(text, max_length=PREFIX_TOKEN_LENGTH, fallback=fallback)


def is_valid_sku(sku: Optional[str]) -> bool:
    return bool(sku) and SKU_PATTERN.match(sku) is not None


# ══════════════════════════════════════════════════════════════
# GENERATORS
# ══════════════════════════════════════════════════════════════

def timestamp_token(clock: Optional[Clock] = None) -> str:
    """Last six digits of the epoch-millisecond time, zero padded."""
    millis = epoch_millis(clock) % (10 ** TIMESTAMP_DIGITS)
    return f"{millis:0{TIMESTAMP_DIGITS}d}"


def random_token(length: int = RANDOM_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_option_sku(
    value_assignment: Iterable[Tuple[str, str]],
    index: int,
    *,
    clock: Optional[Clock] = None,
    prefix: str = VALUE_FALLBACK,
) -> str:
    """
    VAR-<tok1>-<tok2>-...-<6-digit-timestamp>-<index>

    One token per assigned value, in assignment order. index is the
    option's position in the generated list.
    """
    if not isinstance(index, int) or index < 0:
        raise ValueError(f"index must be a non-negative int, got {index!r}.")

    tokens = [normalize(value) for _, value in value_assignment]
    sku = "-".join([prefix, *tokens, timestamp_token(clock), str(index)])

    if not is_valid_sku(sku):
        fallback = f"{VALUE_FALLBACK}-{random_token()}"
        logger.warning(f"Generated SKU '{sku}' failed validation, using '{fallback}'")
        return fallback
    return sku


def generate_product_sku(
    name: Optional[str],
    *,
    clock: Optional[Clock] = None,
    fallback: str = PREFIX_FALLBACK,
) -> str:
    """<name prefix, max 5 chars>-<6-digit-timestamp>, e.g. TSHIR-482913."""
    sku = f"{normalize_prefix(name, fallback)}-{timestamp_token(clock)}"
    if not is_valid_sku(sku):
        sku = f"{PREFIX_FALLBACK}-{random_token()}"
        logger.warning(f"Product SKU for '{name}' failed validation, using '{sku}'")
    return sku
