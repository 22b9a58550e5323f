"""
Catalog Variant Engine - SKU Normalizer & Generator Tests
============================================================
"""

import logging
import re
from datetime import datetime, timezone

import pytest

from core.time.clock import FixedClock
from engines.variants.sku import (
    SKU_PATTERN,
    generate_option_sku,
    generate_product_sku,
    is_valid_sku,
    normalize,
    normalize_prefix,
    random_token,
    timestamp_token,
    transliterate,
)

# 2025-01-01T00:00:00Z is 1735689600000 ms → last six digits 600000
CLOCK = FixedClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
TOKEN = re.compile(r"^[A-Z0-9]+$")


# ══════════════════════════════════════════════════════════════
# NORMALIZER
# ══════════════════════════════════════════════════════════════

class TestNormalize:
    def test_latin_value(self):
        assert normalize("Red") == "RED"

    def test_short_value_kept(self):
        assert normalize("xl") == "XL"

    def test_truncated_to_three(self):
        assert normalize("  Light Blue ") == "LIG"

    def test_punctuation_dropped(self):
        assert normalize("t-shirt!") == "TSH"

    def test_digits_kept(self):
        assert normalize("42") == "42"

    def test_diacritics_folded(self):
        assert normalize("Crème") == "CRE"

    def test_arabic_word_table(self):
        assert normalize("أحمر") == "AHM"
        assert normalize("قطن") == "QTN"

    def test_arabic_letters(self):
        assert normalize("ب") == "B"

    def test_unmapped_arabic_becomes_x(self):
        assert normalize("پ") == "X"

    def test_empty_falls_back(self):
        assert normalize("") == "VAR"
        assert normalize(None) == "VAR"

    def test_unusable_script_falls_back(self):
        assert normalize("红色") == "VAR"

    def test_custom_fallback(self):
        assert normalize("***", fallback="ZZZ") == "ZZZ"

    def test_max_length_must_be_positive(self):
        with pytest.raises(ValueError, match="max_length"):
            normalize("Red", max_length=0)

    @pytest.mark.parametrize("text", [
        "Red", "أزرق", "", "  ", "é", "Size 42", "!!", "صوف", "黑",
    ])
    def test_always_non_empty_token(self, text):
        token = normalize(text)
        assert token
        assert TOKEN.match(token)
        assert len(token) <= 3


class TestNormalizePrefix:
    def test_five_characters(self):
        assert normalize_prefix("T-Shirt Classic") == "TSHIR"

    def test_fallback(self):
        assert normalize_prefix("") == "PROD"


class TestTransliterate:
    def test_longest_word_first(self):
        assert transliterate("أسود") == "ASWD"

    def test_mixed_text(self):
        assert transliterate("Size كبير") == "Size KBIR"


# ══════════════════════════════════════════════════════════════
# GENERATORS
# ══════════════════════════════════════════════════════════════

class TestOptionSku:
    def test_format(self):
        sku = generate_option_sku((("Color", "Red"), ("Size", "M")), 0, clock=CLOCK)
        assert sku == "VAR-RED-M-600000-0"

    def test_index_distinguishes_same_tokens(self):
        a = generate_option_sku((("Color", "Red"),), 0, clock=CLOCK)
        b = generate_option_sku((("Color", "Red"),), 1, clock=CLOCK)
        assert a != b

    def test_custom_prefix(self):
        sku = generate_option_sku((("Size", "XL"),), 3, clock=CLOCK, prefix="OPT")
        assert sku == "OPT-XL-600000-3"

    def test_arabic_values(self):
        sku = generate_option_sku((("اللون", "أحمر"),), 0, clock=CLOCK)
        assert sku == "VAR-AHM-600000-0"
        assert SKU_PATTERN.match(sku)

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError, match="index"):
            generate_option_sku((("Color", "Red"),), -1, clock=CLOCK)

    def test_invalid_result_falls_back_and_logs(self, caplog):
        with caplog.at_level(logging.WARNING, logger="catalog.variants.sku"):
            sku = generate_option_sku((("Color", "Red"),), 0, clock=CLOCK, prefix="bad prefix")
        assert sku.startswith("VAR-")
        assert len(sku) == len("VAR-") + 6
        assert is_valid_sku(sku)
        assert "failed validation" in caplog.text


class TestProductSku:
    def test_format(self):
        assert generate_product_sku("T-Shirt", clock=CLOCK) == "TSHIR-600000"

    def test_missing_name(self):
        assert generate_product_sku(None, clock=CLOCK) == "PROD-600000"

    def test_custom_fallback(self):
        assert generate_product_sku("", clock=CLOCK, fallback="ITEM") == "ITEM-600000"


class TestHelpers:
    def test_timestamp_token_is_six_digits(self):
        clock = FixedClock(datetime(1970, 1, 1, 0, 0, 5, tzinfo=timezone.utc))
        assert timestamp_token(clock) == "005000"

    def test_random_token(self):
        token = random_token()
        assert len(token) == 6
        assert TOKEN.match(token)

    @pytest.mark.parametrize("sku,valid", [
        ("VAR-RED-M-600000-0", True),
        ("ABC123", True),
        ("var-red", False),
        ("VAR RED", False),
        ("", False),
        (None, False),
    ])
    def test_is_valid_sku(self, sku, valid):
        assert is_valid_sku(sku) is valid
