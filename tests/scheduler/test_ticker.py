"""Tests for the clock-driven tick source."""

import threading
from datetime import datetime

import pytest

from dca_app.scheduler.interval import TriggerSchedule, TriggerUnit
from dca_app.scheduler.ticker import ClockTickSource


class TestClockTickSource:
    """Test ClockTickSource against the real clock."""

    def setup_method(self):
        self.source = ClockTickSource(TriggerSchedule(TriggerUnit.SECOND, 1))

    def teardown_method(self):
        self.source.cancel()
        self.source.join(2)

    def test_emits_aligned_fire_times(self):
        fired = []
        got_tick = threading.Event()

        def on_tick(fire_time: datetime) -> None:
            fired.append(fire_time)
            got_tick.set()

        self.source.start(on_tick)

        assert got_tick.wait(3)
        assert fired[0].microsecond == 0
        assert fired[0].tzinfo is not None

    def test_cancel_before_first_fire(self):
        fired = []
        source = ClockTickSource(TriggerSchedule(TriggerUnit.HOUR, 1))

        source.start(fired.append)
        assert source.is_active

        source.cancel()
        source.join(2)

        assert not source.is_active
        assert fired == []

    def test_start_twice_rejected(self):
        self.source.start(lambda fire_time: None)

        with pytest.raises(RuntimeError):
            self.source.start(lambda fire_time: None)

    def test_callback_error_does_not_stop_ticks(self):
        calls = []
        second_tick = threading.Event()

        def on_tick(fire_time: datetime) -> None:
            calls.append(fire_time)
            if len(calls) == 1:
                raise RuntimeError("boom")
            second_tick.set()

        self.source.start(on_tick)

        assert second_tick.wait(4)
        assert calls[1] > calls[0]
