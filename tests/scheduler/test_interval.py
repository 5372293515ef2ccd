"""Tests for interval translation and trigger alignment."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from dca_app.errors import ConfigurationError
from dca_app.scheduler.interval import TriggerSchedule, TriggerUnit, translate_interval


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestTranslateInterval:
    """Tier selection and rounding."""

    @pytest.mark.parametrize("minutes, seconds", [
        (0.5, 30),
        (0.25, 15),
        (0.1, 6),
        (0.999, 60),
    ])
    def test_sub_minute_rounds_to_seconds(self, minutes, seconds):
        schedule = translate_interval(minutes)
        assert schedule == TriggerSchedule(TriggerUnit.SECOND, seconds)
        assert schedule.period == timedelta(seconds=seconds)

    def test_tiny_interval_never_rounds_to_zero(self):
        schedule = translate_interval(0.001)
        assert schedule == TriggerSchedule(TriggerUnit.SECOND, 1)

    @pytest.mark.parametrize("minutes, expected", [
        (1, 1),
        (5, 5),
        (2.4, 2),
        (2.5, 3),
        (59.4, 59),
        (59.6, 60),
    ])
    def test_minute_tier_rounds_half_up(self, minutes, expected):
        schedule = translate_interval(minutes)
        assert schedule.unit == TriggerUnit.MINUTE
        assert schedule.step == expected

    @pytest.mark.parametrize("minutes, hours", [
        (60, 1),
        (90, 1),
        (119.9, 1),
        (150, 2),
        (1439, 23),
    ])
    def test_hour_tier_drops_sub_hour_remainder(self, minutes, hours):
        schedule = translate_interval(minutes)
        assert schedule == TriggerSchedule(TriggerUnit.HOUR, hours)

    def test_ninety_minutes_is_one_hour(self):
        assert translate_interval(90).period == timedelta(hours=1)

    @pytest.mark.parametrize("minutes, days", [
        (1440, 1),
        (2000, 1),
        (4320, 3),
        (10080, 7),
    ])
    def test_day_tier_drops_sub_day_remainder(self, minutes, days):
        schedule = translate_interval(minutes)
        assert schedule == TriggerSchedule(TriggerUnit.DAY, days)

    @pytest.mark.parametrize("value", [0, -1, -0.5, math.nan, math.inf, "5", None, True])
    def test_invalid_intervals_rejected(self, value):
        with pytest.raises(ConfigurationError) as exc_info:
            translate_interval(value)
        assert exc_info.value.invalid_fields == ["purchase_interval_minutes"]


class TestTriggerSchedule:
    """Cron rendering and clock alignment."""

    @pytest.mark.parametrize("minutes, cron", [
        (0.5, "*/30 * * * * *"),
        (5, "*/5 * * * *"),
        (120, "0 */2 * * *"),
        (4320, "0 0 */3 * *"),
    ])
    def test_cron_expression(self, minutes, cron):
        assert translate_interval(minutes).cron_expression == cron

    def test_step_must_be_positive(self):
        with pytest.raises(ValueError):
            TriggerSchedule(TriggerUnit.MINUTE, 0)

    def test_seconds_alignment(self):
        schedule = TriggerSchedule(TriggerUnit.SECOND, 30)
        assert schedule.next_fire_after(utc(2024, 1, 1, 12, 0, 10, 500000)) == utc(2024, 1, 1, 12, 0, 30)

    def test_fire_time_is_strictly_after_moment(self):
        schedule = TriggerSchedule(TriggerUnit.SECOND, 30)
        assert schedule.next_fire_after(utc(2024, 1, 1, 12, 0, 30)) == utc(2024, 1, 1, 12, 1, 0)

    def test_minutes_alignment(self):
        schedule = TriggerSchedule(TriggerUnit.MINUTE, 5)
        assert schedule.next_fire_after(utc(2024, 1, 1, 12, 7, 30)) == utc(2024, 1, 1, 12, 10)

    def test_minutes_wrap_at_hour(self):
        schedule = TriggerSchedule(TriggerUnit.MINUTE, 7)
        assert schedule.next_fire_after(utc(2024, 1, 1, 12, 57)) == utc(2024, 1, 1, 13, 0)

    def test_sixty_minute_step_fires_on_the_hour(self):
        schedule = translate_interval(59.6)
        assert schedule.next_fire_after(utc(2024, 1, 1, 12, 30)) == utc(2024, 1, 1, 13, 0)

    def test_hours_alignment(self):
        schedule = TriggerSchedule(TriggerUnit.HOUR, 2)
        assert schedule.next_fire_after(utc(2024, 1, 1, 13, 15)) == utc(2024, 1, 1, 14, 0)

    def test_hours_wrap_at_midnight(self):
        schedule = TriggerSchedule(TriggerUnit.HOUR, 5)
        assert schedule.next_fire_after(utc(2024, 1, 1, 21, 0)) == utc(2024, 1, 2, 0, 0)

    def test_days_alignment_counts_from_first_of_month(self):
        schedule = TriggerSchedule(TriggerUnit.DAY, 3)
        assert schedule.next_fire_after(utc(2024, 1, 2, 10, 0)) == utc(2024, 1, 4, 0, 0)

    def test_days_wrap_at_month_end(self):
        schedule = TriggerSchedule(TriggerUnit.DAY, 3)
        assert schedule.next_fire_after(utc(2024, 1, 31, 10, 0)) == utc(2024, 2, 1, 0, 0)

    def test_naive_moment_treated_as_utc(self):
        schedule = TriggerSchedule(TriggerUnit.MINUTE, 1)
        assert schedule.next_fire_after(datetime(2024, 1, 1, 12, 0, 30)) == utc(2024, 1, 1, 12, 1)

    def test_to_dict(self):
        data = translate_interval(0.5).to_dict()
        assert data == {"unit": "second", "step": 30, "periodSeconds": 30.0, "cron": "*/30 * * * * *"}

    def test_describe(self):
        assert TriggerSchedule(TriggerUnit.HOUR, 1).describe() == "every 1 hour"
        assert TriggerSchedule(TriggerUnit.DAY, 3).describe() == "every 3 days"
