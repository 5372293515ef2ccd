"""
Interval translation from user minutes to a clock-aligned trigger schedule.

The schedule is field-quantized like a cron expression rather than an exact
duration offset:

    0 < i < 1        every round(i * 60) seconds
    1 <= i < 60      every round(i) minutes
    60 <= i < 1440   every floor(i / 60) hours     (sub-hour remainder dropped)
    i >= 1440        every floor(i / 1440) days    (sub-day remainder dropped)

A 90 minute interval therefore fires hourly. This loss of precision is kept
as is; exact-duration scheduling would need a different trigger type.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from ..errors import ConfigurationError
from ..utils.time import ensure_utc

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440


class TriggerUnit(str, Enum):
    """Clock field a schedule steps through."""
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"


_UNIT_DELTAS = {
    TriggerUnit.SECOND: timedelta(seconds=1),
    TriggerUnit.MINUTE: timedelta(minutes=1),
    TriggerUnit.HOUR: timedelta(hours=1),
    TriggerUnit.DAY: timedelta(days=1),
}


@dataclass(frozen=True)
class TriggerSchedule:
    """Periodic trigger: fire every `step` units, aligned to the clock."""

    unit: TriggerUnit
    step: int

    def __post_init__(self) -> None:
        if self.step < 1:
            raise ValueError(f"Trigger step must be at least 1, got {self.step}")

    @property
    def period(self) -> timedelta:
        return _UNIT_DELTAS[self.unit] * self.step

    @property
    def cron_expression(self) -> str:
        """Equivalent cron expression; 6 fields for second schedules."""
        if self.unit == TriggerUnit.SECOND:
            return f"*/{self.step} * * * * *"
        if self.unit == TriggerUnit.MINUTE:
            return f"*/{self.step} * * * *"
        if self.unit == TriggerUnit.HOUR:
            return f"0 */{self.step} * * *"
        return f"0 0 */{self.step} * *"

    def next_fire_after(self, moment: datetime) -> datetime:
        """
        First aligned fire time strictly after `moment` (UTC).

        Alignment follows cron step semantics: the field value must be a
        multiple of the step, and day-of-month counts from 1. Steps that do
        not divide the field range produce a shorter gap at the wrap.
        """
        moment = ensure_utc(moment)
        unit_delta = _UNIT_DELTAS[self.unit]

        if self.unit == TriggerUnit.SECOND:
            candidate = moment.replace(microsecond=0)
        elif self.unit == TriggerUnit.MINUTE:
            candidate = moment.replace(second=0, microsecond=0)
        elif self.unit == TriggerUnit.HOUR:
            candidate = moment.replace(minute=0, second=0, microsecond=0)
        else:
            candidate = moment.replace(hour=0, minute=0, second=0, microsecond=0)

        candidate += unit_delta
        while not self._matches(candidate):
            candidate += unit_delta
        return candidate

    def _matches(self, candidate: datetime) -> bool:
        if self.unit == TriggerUnit.SECOND:
            return candidate.second % self.step == 0
        if self.unit == TriggerUnit.MINUTE:
            return candidate.minute % self.step == 0
        if self.unit == TriggerUnit.HOUR:
            return candidate.hour % self.step == 0
        return (candidate.day - 1) % self.step == 0

    def describe(self) -> str:
        plural = "" if self.step == 1 else "s"
        return f"every {self.step} {self.unit.value}{plural}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "unit": self.unit.value,
            "step": self.step,
            "periodSeconds": self.period.total_seconds(),
            "cron": self.cron_expression,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def translate_interval(interval_minutes: float) -> TriggerSchedule:
    """
    Map a purchase interval in minutes to a trigger schedule.

    Raises:
        ConfigurationError: interval is not a finite positive number
    """
    if isinstance(interval_minutes, bool) or not isinstance(interval_minutes, (int, float)):
        raise ConfigurationError(
            f"Purchase interval must be a number, got {interval_minutes!r}",
            invalid_fields=["purchase_interval_minutes"],
        )
    if not math.isfinite(interval_minutes) or interval_minutes <= 0:
        raise ConfigurationError(
            f"Purchase interval must be greater than 0, got {interval_minutes!r}",
            invalid_fields=["purchase_interval_minutes"],
        )

    if interval_minutes < 1:
        # Sub-minute intervals exist for testing; never below one second
        seconds = max(1, _round_half_up(interval_minutes * 60))
        return TriggerSchedule(TriggerUnit.SECOND, seconds)

    if interval_minutes < MINUTES_PER_HOUR:
        return TriggerSchedule(TriggerUnit.MINUTE, _round_half_up(interval_minutes))

    if interval_minutes < MINUTES_PER_DAY:
        return TriggerSchedule(TriggerUnit.HOUR, int(interval_minutes // MINUTES_PER_HOUR))

    return TriggerSchedule(TriggerUnit.DAY, int(interval_minutes // MINUTES_PER_DAY))
