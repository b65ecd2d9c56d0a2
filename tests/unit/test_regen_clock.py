"""
Unit tests for the resource regeneration clock.

Every function is pure, so tests pass explicit `now` values.
"""

from datetime import datetime, timedelta, timezone

import pytest

from lifequest.modules.resource import regen_clock

NOW = datetime(2026, 10, 17, 10, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestTimestamps:
    """Stored timestamp parsing."""

    def test_epoch_milliseconds_and_seconds_agree(self):
        assert regen_clock.parse_timestamp(1_700_000_000_000) == regen_clock.parse_timestamp(
            1_700_000_000
        )

    def test_iso_with_zulu_suffix(self):
        parsed = regen_clock.parse_timestamp("2026-10-17T10:00:00Z")
        assert parsed == NOW

    def test_naive_datetime_is_utc(self):
        parsed = regen_clock.parse_timestamp(datetime(2026, 10, 17, 10, 0))
        assert parsed == NOW

    @pytest.mark.parametrize("raw", [None, "", "not a date", float("nan"), True, object()])
    def test_garbage_is_none(self, raw):
        assert regen_clock.parse_timestamp(raw) is None

    def test_future_timestamp_counts_as_zero_elapsed(self):
        assert regen_clock.elapsed_seconds(NOW + timedelta(hours=1), NOW) == 0.0


@pytest.mark.unit
class TestRegeneration:
    """Tick timing and offline catch-up."""

    def test_next_regen_is_zero_when_full(self):
        assert regen_clock.time_to_next_regen(NOW, 100, 100, 600, NOW) == 0

    def test_next_regen_counts_down_inside_cycle(self):
        last = NOW - timedelta(seconds=100)
        assert regen_clock.time_to_next_regen(last, 10, 100, 600, NOW) == 500

    def test_time_to_full(self):
        """First tick after 500s, then two more full cycles."""
        assert regen_clock.time_to_full(0, 3, 1, 500, 600) == 1700

    def test_offline_recovery_three_cycles(self):
        # Arrange
        last = NOW - timedelta(seconds=3 * 600)

        # Act
        gained = regen_clock.offline_recovery(last, 0, 100, 10, 600, 24, NOW)

        # Assert
        assert gained == 30

    def test_offline_recovery_never_exceeds_max(self):
        last = NOW - timedelta(hours=2)
        assert regen_clock.offline_recovery(last, 95, 100, 10, 600, 24, NOW) == 5

    def test_offline_recovery_is_capped_by_hours(self):
        """Two days away credits at most the configured 24 hours."""
        last = NOW - timedelta(hours=48)
        assert regen_clock.offline_recovery(last, 0, 1000, 1, 600, 24, NOW) == 144

    def test_never_updated_counts_as_full_cap(self):
        assert regen_clock.offline_recovery(None, 0, 10, 1, 600, 24, NOW) == 10

    def test_full_value_recovers_nothing(self):
        last = NOW - timedelta(hours=5)
        assert regen_clock.offline_recovery(last, 100, 100, 10, 600, 24, NOW) == 0

    def test_settle_keeps_partial_cycle(self):
        """2.5 cycles elapsed: two are credited and the half cycle carries over."""
        # Arrange
        last = NOW - timedelta(seconds=1500)

        # Act
        current, new_last = regen_clock.settle_regen(10, 100, last, 1, 600, 24, NOW)

        # Assert
        assert current == 12
        assert new_last == last + timedelta(seconds=1200)

    def test_settle_resets_timestamp_when_full(self):
        last = NOW - timedelta(hours=10)
        current, new_last = regen_clock.settle_regen(95, 100, last, 1, 600, 24, NOW)
        assert current == 100
        assert new_last == NOW

    def test_fractional_interval_rounds_up_to_whole_seconds(self):
        assert regen_clock.time_to_next_regen(NOW, 0, 10, 0.5, NOW) == 1
        assert regen_clock.time_to_next_regen(NOW, 0, 10, 2.5, NOW) == 3

    def test_half_second_interval_ticks_once_per_second(self):
        last = NOW - timedelta(seconds=10)
        assert regen_clock.offline_recovery(last, 0, 100, 1, 0.5, 24, NOW) == 10

    def test_next_regen_stays_inside_interval_across_a_cycle(self):
        """Every offset in a cycle, including fractional ones, lands in [1, interval]."""
        offsets = [step / 4 for step in range(0, 4 * 600 + 1)]

        results = [
            regen_clock.time_to_next_regen(NOW - timedelta(seconds=o), 10, 100, 600, NOW)
            for o in offsets
        ]

        assert all(1 <= r <= 600 for r in results)
        assert results[0] == 600
        assert results[-1] == 600

    def test_offline_recovery_never_decreases_with_time_away(self):
        gains = [
            regen_clock.offline_recovery(
                NOW - timedelta(seconds=seconds), 0, 300, 3, 600, 24, NOW
            )
            for seconds in range(0, 30 * 3600, 97)
        ]

        assert gains == sorted(gains)
        assert gains[-1] == 300


@pytest.mark.unit
class TestDailyBoundaries:
    """Reset hour and daily bonus rules."""

    def test_reset_after_boundary(self):
        last = datetime(2026, 10, 17, 3, 0, tzinfo=timezone.utc)
        now = datetime(2026, 10, 17, 5, 0, tzinfo=timezone.utc)
        assert regen_clock.should_reset(last, now, 4) is True

    def test_no_reset_before_boundary(self):
        last = datetime(2026, 10, 17, 4, 30, tzinfo=timezone.utc)
        now = datetime(2026, 10, 18, 3, 59, tzinfo=timezone.utc)
        assert regen_clock.should_reset(last, now, 4) is False

    def test_reset_exactly_on_boundary(self):
        last = datetime(2026, 10, 17, 4, 30, tzinfo=timezone.utc)
        now = datetime(2026, 10, 18, 4, 0, tzinfo=timezone.utc)
        assert regen_clock.should_reset(last, now, 4) is True

    def test_never_reset_means_reset(self):
        assert regen_clock.should_reset(None, NOW, 4) is True

    def test_time_to_reset(self):
        assert regen_clock.time_to_reset(NOW, 4) == 18 * 3600

    def test_claim_cooldown(self):
        assert regen_clock.can_claim(NOW - timedelta(hours=23), NOW) is False
        assert regen_clock.can_claim(NOW - timedelta(hours=24), NOW) is True
        assert regen_clock.can_claim(None, NOW) is True

    @pytest.mark.parametrize(
        "hours_since, expected",
        [(30, 4), (50, 1), (10, 1)],
    )
    def test_next_streak(self, hours_since, expected):
        last = NOW - timedelta(hours=hours_since)
        assert regen_clock.next_streak(last, 3, NOW) == expected

    def test_first_claim_starts_streak(self):
        assert regen_clock.next_streak(None, 0, NOW) == 1
