"""Cancellable tick sources feeding the schedule controller."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional

import structlog

from ..utils.time import Clock, seconds_until, utc_now
from .interval import TriggerSchedule

logger = structlog.get_logger(__name__)

TickCallback = Callable[[datetime], None]


class TickSource(ABC):
    """Emits fire times to a callback until cancelled."""

    @abstractmethod
    def start(self, on_tick: TickCallback) -> None:
        """Begin emitting ticks. Called at most once per instance."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop emitting future ticks. Does not wait for a running callback."""

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """True between start() and cancel()."""


class ClockTickSource(TickSource):
    """Daemon thread that sleeps until each aligned fire time of a schedule."""

    def __init__(self, schedule: TriggerSchedule, clock: Clock = utc_now, name: str = "dca-ticker"):
        self.schedule = schedule
        self.clock = clock
        self.name = name
        self.logger = logger.bind(schedule=schedule.describe())
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self, on_tick: TickCallback) -> None:
        if self._thread is not None:
            raise RuntimeError("Tick source already started")

        self._thread = threading.Thread(
            target=self._run, args=(on_tick,), name=self.name, daemon=True
        )
        self._thread.start()
        self.logger.debug("Tick source started")

    def cancel(self) -> None:
        self._cancelled.set()
        self.logger.debug("Tick source cancelled")

    @property
    def is_active(self) -> bool:
        return self._thread is not None and not self._cancelled.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self, on_tick: TickCallback) -> None:
        last_fire: Optional[datetime] = None

        while not self._cancelled.is_set():
            now = self.clock()
            # Never emit the same slot twice when the wait returns early
            reference = now if last_fire is None or now > last_fire else last_fire
            fire_time = self.schedule.next_fire_after(reference)

            if self._cancelled.wait(seconds_until(fire_time, now)):
                break

            last_fire = fire_time
            try:
                on_tick(fire_time)
            except Exception:
                self.logger.exception("Tick callback raised", fire_time=fire_time.isoformat())
