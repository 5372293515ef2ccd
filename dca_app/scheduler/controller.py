"""
Schedule controller: the Stopped/Running state machine.

The controller owns the tick source and a single worker thread. Tick sources
call _dispatch_tick() from their own thread; the dispatch either hands the
tick to the worker or, when the previous tick is still running, skips it.
A skipped fire leaves no trace in the purchase history.
"""

import queue
import threading
from datetime import datetime
from typing import Callable, Optional

from ..config.validation import MIN_PURCHASE_AMOUNT, ConfigValidator, format_validation_errors
from ..errors import ConfigurationError, ConnectivityError, ScheduleStateError, StartupError
from ..exchange.base import ExchangeClient
from ..exchange.credentials import CredentialResolver, Credentials
from ..execution.executor import PurchaseExecutor
from ..logging.config import get_scheduler_logger, log_state_transition
from ..models.bot import BotConfiguration
from ..persistence.base import PersistenceGateway
from ..utils.time import Clock, utc_now
from .interval import TriggerSchedule, translate_interval
from .models import ControlResult, ScheduleState, ScheduleStatus
from .ticker import ClockTickSource, TickSource

scheduler_logger = get_scheduler_logger(__name__)

ClientFactory = Callable[[Credentials], ExchangeClient]
TickSourceFactory = Callable[[TriggerSchedule], TickSource]

_STOP_WORKER = object()


class ScheduleController:
    """Starts, stops and reports on the recurring purchase schedule."""

    def __init__(
        self,
        persistence: PersistenceGateway,
        credential_resolver: CredentialResolver,
        client_factory: ClientFactory,
        pair: str = "BTC/USDT",
        quote_asset: str = "USDT",
        min_purchase_amount: float = MIN_PURCHASE_AMOUNT,
        max_interval_minutes: Optional[float] = None,
        tick_source_factory: Optional[TickSourceFactory] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.persistence = persistence
        self.credential_resolver = credential_resolver
        self.client_factory = client_factory
        self.pair = pair
        self.quote_asset = quote_asset
        self.min_purchase_amount = min_purchase_amount
        self.max_interval_minutes = max_interval_minutes
        self.clock = clock
        self.tick_source_factory = tick_source_factory or (
            lambda schedule: ClockTickSource(schedule, clock=clock)
        )
        self.logger = scheduler_logger

        # start()/stop() are serialized; field access uses the condition lock
        self._control_lock = threading.Lock()
        self._state_changed = threading.Condition()

        self._state = ScheduleState.STOPPED
        self._tick_source: Optional[TickSource] = None
        self._executor: Optional[PurchaseExecutor] = None
        self._schedule: Optional[TriggerSchedule] = None
        self._started_at: Optional[datetime] = None
        self._last_fire_time: Optional[datetime] = None
        self._busy = False
        self._skipped_fires = 0

        self._queue: "queue.Queue[object]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None

    @property
    def state(self) -> ScheduleState:
        with self._state_changed:
            return self._state

    @property
    def executor(self) -> Optional[PurchaseExecutor]:
        with self._state_changed:
            return self._executor

    @property
    def tick_source(self) -> Optional[TickSource]:
        with self._state_changed:
            return self._tick_source

    def start(self) -> ControlResult:
        """
        Start the schedule.

        Returns:
            ControlResult; already running is reported, not raised

        Raises:
            ConfigurationError: settings or credentials are missing or invalid
            ConnectivityError: exchange probe failed
            PersistenceError: settings could not be read or flagged active
        """
        with self._control_lock:
            if self.state == ScheduleState.RUNNING:
                self.logger.info("Start requested while already running")
                return ControlResult(True, "DCA bot is already running", changed=False)

            self.logger.info("Starting DCA bot")
            config = self._load_startable_configuration()
            credentials = self.credential_resolver.resolve(config.credentials_ref)
            schedule = translate_interval(config.purchase_interval_minutes)
            client = self._connect(credentials)

            executor = PurchaseExecutor(
                exchange=client,
                persistence=self.persistence,
                pair=self.pair,
                quote_asset=self.quote_asset,
                clock=self.clock,
            )
            tick_source = self.tick_source_factory(schedule)

            self.persistence.set_active_flag(True)
            self._ensure_worker()

            with self._state_changed:
                self._executor = executor
                self._schedule = schedule
                self._tick_source = tick_source
                self._started_at = self.clock()
                self._last_fire_time = None
                self._skipped_fires = 0
                self._transition(ScheduleState.RUNNING, "start", {
                    "schedule": schedule.describe(),
                    "cron": schedule.cron_expression,
                    "purchase_amount": config.purchase_amount,
                })

            try:
                tick_source.start(self._dispatch_tick)
            except Exception:
                with self._state_changed:
                    self._tick_source = None
                    self._transition(ScheduleState.STOPPED, "start_failed")
                self.persistence.set_active_flag(False)
                raise
            return ControlResult(True, "DCA bot started successfully")

    def stop(self) -> ControlResult:
        """
        Stop the schedule. Future fires are cancelled; an in-flight tick
        runs to completion.
        """
        with self._control_lock:
            with self._state_changed:
                if self._state == ScheduleState.STOPPED:
                    return ControlResult(True, "DCA bot is not running", changed=False)

                tick_source = self._tick_source
                self._tick_source = None
                self._transition(ScheduleState.STOPPED, "stop")

            if tick_source is not None:
                tick_source.cancel()

            self.persistence.set_active_flag(False)
            return ControlResult(True, "DCA bot stopped successfully")

    def status(self) -> ScheduleStatus:
        """Report state, the approximate next fire time and the current settings."""
        try:
            configuration = self.persistence.get_active_configuration()
        except Exception as e:
            self.logger.warning("Unable to load configuration for status", error=str(e))
            configuration = None

        with self._state_changed:
            next_fire = None
            if self._state == ScheduleState.RUNNING and self._schedule is not None:
                reference = self._last_fire_time or self._started_at
                if reference is not None:
                    next_fire = reference + self._schedule.period

            return ScheduleStatus(
                state=self._state,
                next_fire_estimate=next_fire,
                configuration=configuration,
                last_fire_time=self._last_fire_time,
                schedule=self._schedule if self._state == ScheduleState.RUNNING else None,
                skipped_fires=self._skipped_fires,
            )

    def wait_for_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no tick is executing. Returns False on timeout."""
        with self._state_changed:
            return self._state_changed.wait_for(lambda: not self._busy, timeout)

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop the schedule and shut down the worker thread."""
        self.stop()
        worker = self._worker
        if worker is not None:
            self._queue.put(_STOP_WORKER)
            worker.join(timeout)
            self._worker = None

    def _load_startable_configuration(self) -> BotConfiguration:
        config = self.persistence.get_active_configuration()
        if config is None:
            raise ConfigurationError(
                "Purchase settings not configured",
                missing_fields=["purchase_amount", "purchase_interval_minutes", "credentials_ref"],
            )

        if not config.credentials_ref:
            raise ConfigurationError("API keys not configured", missing_fields=["credentials_ref"])

        if not config.has_purchase_settings:
            raise ConfigurationError(
                "Purchase settings not configured",
                missing_fields=[f for f in config.missing_fields() if f != "credentials_ref"],
            )

        errors = ConfigValidator.validate_bot_settings(
            {
                "purchase_amount": config.purchase_amount,
                "purchase_interval_minutes": config.purchase_interval_minutes,
            },
            min_purchase_amount=self.min_purchase_amount,
            max_interval_minutes=self.max_interval_minutes,
        )
        if errors:
            raise ConfigurationError(
                format_validation_errors(errors),
                invalid_fields=[err.field for err in errors],
            )
        return config

    def _connect(self, credentials: Credentials) -> ExchangeClient:
        try:
            client = self.client_factory(credentials)
            client.test_connection()
        except StartupError:
            raise
        except Exception as e:
            raise ConnectivityError(f"API connection failed: {e}", cause=e) from e
        return client

    def _transition(self, to_state: ScheduleState, trigger: str, context: Optional[dict] = None) -> None:
        """Apply a state change. Caller holds the condition lock."""
        if to_state == self._state:
            raise ScheduleStateError(
                f"Schedule is already {to_state.value}",
                current_state=self._state.value,
                attempted_transition=trigger,
            )
        from_state = self._state
        self._state = to_state
        self._state_changed.notify_all()
        log_state_transition(self.logger, from_state.value, to_state.value, trigger, context)

    def _ensure_worker(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(target=self._worker_loop, name="dca-tick-worker", daemon=True)
            self._worker.start()

    def _dispatch_tick(self, fire_time: datetime) -> None:
        with self._state_changed:
            if self._state != ScheduleState.RUNNING or self._executor is None:
                return
            if self._busy:
                self._skipped_fires += 1
                self.logger.warning(
                    "Previous tick still running, skipping fire",
                    fire_time=fire_time.isoformat(),
                    skipped_fires=self._skipped_fires,
                )
                return
            self._busy = True
            self._last_fire_time = fire_time
            executor = self._executor

        self._queue.put((fire_time, executor))

    def _worker_loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP_WORKER:
                break

            fire_time, executor = item
            try:
                executor.execute_tick(fire_time)
            except Exception:
                self.logger.exception("Purchase tick raised", fire_time=fire_time.isoformat())
            finally:
                with self._state_changed:
                    self._busy = False
                    self._state_changed.notify_all()
