"""
Tests for core.time - epoch milliseconds behind the SKU timestamp segment.
"""

from datetime import datetime, timezone

import pytest

from core.time.clock import (
    FixedClock,
    SystemClock,
    epoch_millis,
    get_default_clock,
    set_default_clock,
)
from engines.variants.sku import timestamp_token


def _at(*args, **kwargs):
    return FixedClock(datetime(*args, tzinfo=timezone.utc, **kwargs))


# ── epoch_millis ─────────────────────────────────────────────

class TestEpochMillis:
    def test_epoch_start(self):
        assert epoch_millis(_at(1970, 1, 1)) == 0

    def test_known_instant(self):
        assert epoch_millis(_at(2025, 1, 1)) == 1735689600000

    def test_sub_millisecond_part_is_dropped(self):
        assert epoch_millis(_at(1970, 1, 1, 0, 0, 1, 250999)) == 1250

    def test_follows_fixed_clock_advance(self):
        clock = _at(2025, 1, 1)
        clock.advance(2.5)
        assert epoch_millis(clock) == 1735689602500

    def test_reads_default_clock_when_none_given(self):
        original = get_default_clock()
        set_default_clock(_at(2025, 1, 1))
        try:
            assert epoch_millis() == 1735689600000
        finally:
            set_default_clock(original)

    def test_system_clock_is_current(self):
        before = int(datetime.now(timezone.utc).timestamp() * 1000)
        assert epoch_millis(SystemClock()) >= before

    def test_fixed_clock_needs_timezone(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            FixedClock(datetime(2025, 1, 1))


# ── SKU timestamp segment ────────────────────────────────────

class TestTimestampToken:
    def test_last_six_digits(self):
        assert timestamp_token(_at(2025, 1, 1)) == "600000"

    def test_zero_padded(self):
        assert timestamp_token(_at(1970, 1, 1, 0, 0, 0, 42000)) == "000042"

    def test_wraps_every_thousand_seconds(self):
        clock = _at(2025, 1, 1)
        first = timestamp_token(clock)
        clock.advance(1000)
        assert timestamp_token(clock) == first

    def test_follows_clock_within_window(self):
        clock = _at(2025, 1, 1)
        clock.advance(0.5)
        assert timestamp_token(clock) == "600500"
