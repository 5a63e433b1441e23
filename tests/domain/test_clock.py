"""Tests for the injectable clocks used to stamp trace event times."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from material_kernel.domain.clock import DeterministicClock, SystemClock

START = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


class TestDeterministicClock:

    def test_holds_still_until_moved(self):
        clock = DeterministicClock(START)

        assert clock.now() == clock.now() == START

    def test_tick_steps_one_second(self):
        clock = DeterministicClock(START)

        assert clock.tick() == START + timedelta(seconds=1)
        assert clock.tick() == START + timedelta(seconds=2)

    def test_advance_accepts_seconds_or_timedelta(self):
        clock = DeterministicClock(START)
        clock.advance(30)
        clock.advance(timedelta(minutes=1))

        assert clock.now() == START + timedelta(seconds=90)

    def test_set_time_replaces_current_instant(self):
        clock = DeterministicClock(START)
        clock.advance(10)
        later = START + timedelta(days=1)
        clock.set_time(later)

        assert clock.now() == later

    def test_naive_times_rejected(self):
        with pytest.raises(ValueError):
            DeterministicClock(datetime(2024, 3, 1, 8, 0))
        with pytest.raises(ValueError):
            DeterministicClock(START).set_time(datetime(2024, 3, 2))

    def test_now_utc_converts_offset(self):
        cet = timezone(timedelta(hours=1))
        clock = DeterministicClock(datetime(2024, 3, 1, 9, 0, tzinfo=cet))

        assert clock.now_utc() == START
        assert clock.now_utc().tzinfo == timezone.utc


class TestSystemClock:

    def test_returns_aware_utc(self):
        assert SystemClock().now().utcoffset() == timedelta(0)
