from datetime import datetime, timedelta, timezone

import pytest

from inventory_ledger.domain.clock import DEFAULT_TEST_TIME, DeterministicClock, SystemClock


def test_deterministic_clock_is_frozen_until_advanced():
    clock = DeterministicClock()
    assert clock.now() == clock.now() == DEFAULT_TEST_TIME
    assert clock.advance(90) == DEFAULT_TEST_TIME + timedelta(seconds=90)
    assert clock.now() == DEFAULT_TEST_TIME + timedelta(seconds=90)


def test_deterministic_clock_rejects_naive_start_and_rewind():
    with pytest.raises(ValueError):
        DeterministicClock(datetime(2024, 1, 1))
    with pytest.raises(ValueError):
        DeterministicClock().advance(-1)


def test_system_clock_is_utc():
    assert SystemClock().now().tzinfo == timezone.utc
