"""Schedule state and control result models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..models.bot import BotConfiguration
from ..utils.time import format_timestamp
from .interval import TriggerSchedule


class ScheduleState(str, Enum):
    """Schedule lifecycle states."""
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class ControlResult:
    """Outcome of a start() or stop() call that did not raise."""
    success: bool
    message: str
    changed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}


@dataclass(frozen=True)
class ScheduleStatus:
    """Snapshot of the controller for status reporting."""

    state: ScheduleState
    next_fire_estimate: Optional[datetime] = None    # Approximate, see TriggerSchedule
    configuration: Optional[BotConfiguration] = None
    last_fire_time: Optional[datetime] = None
    schedule: Optional[TriggerSchedule] = None
    skipped_fires: int = 0

    @property
    def is_running(self) -> bool:
        return self.state == ScheduleState.RUNNING

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"isRunning": self.is_running}
        if self.next_fire_estimate is not None:
            result["nextExecutionEstimate"] = format_timestamp(self.next_fire_estimate)
        if self.configuration is not None:
            result["settings"] = self.configuration.to_dict()
        if self.schedule is not None:
            result["schedule"] = self.schedule.to_dict()
        return result
