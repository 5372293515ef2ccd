"""Pytest configuration and shared fixtures."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from dca_app.errors import OrderError
from dca_app.exchange.base import ExchangeClient, OrderResult, OrderSide
from dca_app.exchange.credentials import Credentials, StaticCredentialResolver
from dca_app.models.bot import BotConfiguration
from dca_app.persistence.memory import InMemoryPersistenceGateway
from dca_app.scheduler.controller import ScheduleController
from dca_app.scheduler.interval import TriggerSchedule
from dca_app.scheduler.ticker import TickSource


class FakeExchange(ExchangeClient):
    """Scriptable exchange client."""

    def __init__(self, balance: float = 100.0, price: float = 30000.0):
        self.balance = balance
        self.price = price
        self.connection_error: Optional[Exception] = None
        self.balance_error: Optional[Exception] = None
        self.order_error: Optional[Exception] = None
        self.balance_gate: Optional[threading.Event] = None
        self.orders: list[tuple[str, OrderSide, float]] = []
        self.order_reference_prices: list[Optional[float]] = []
        self.order_result: Optional[OrderResult] = None
        self.price_requests = 0

    def test_connection(self) -> float:
        if self.connection_error is not None:
            raise self.connection_error
        return self.balance

    def get_balance(self, asset: str) -> float:
        if self.balance_gate is not None:
            self.balance_gate.wait(5)
        if self.balance_error is not None:
            raise self.balance_error
        return self.balance

    def get_reference_price(self, pair: str) -> float:
        self.price_requests += 1
        return self.price

    def place_market_order(
        self,
        pair: str,
        side: OrderSide,
        notional_amount: float,
        reference_price: Optional[float] = None,
    ) -> OrderResult:
        if self.order_error is not None:
            raise self.order_error
        self.orders.append((pair, side, notional_amount))
        self.order_reference_prices.append(reference_price)
        if self.order_result is not None:
            return self.order_result
        return OrderResult(
            order_id=f"order-{len(self.orders)}",
            filled_quantity=notional_amount / self.price,
            avg_price=self.price,
        )


class ManualTickSource(TickSource):
    """Tick source driven explicitly by the test."""

    def __init__(self, schedule: TriggerSchedule):
        self.schedule = schedule
        self.callback: Optional[Callable[[datetime], None]] = None
        self.cancelled = False

    def start(self, on_tick: Callable[[datetime], None]) -> None:
        self.callback = on_tick

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def is_active(self) -> bool:
        return self.callback is not None and not self.cancelled

    def fire(self, fire_time: datetime) -> None:
        if self.is_active:
            self.callback(fire_time)


class ManualTickSourceFactory:
    """Records every tick source the controller asks for."""

    def __init__(self):
        self.created: list[ManualTickSource] = []

    def __call__(self, schedule: TriggerSchedule) -> ManualTickSource:
        source = ManualTickSource(schedule)
        self.created.append(source)
        return source

    @property
    def last(self) -> ManualTickSource:
        return self.created[-1]


class FixedClock:
    """Clock returning a settable time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def fake_exchange() -> FakeExchange:
    return FakeExchange()


@pytest.fixture
def bot_config() -> BotConfiguration:
    return BotConfiguration(
        purchase_amount=20.0,
        purchase_interval_minutes=0.5,
        credentials_ref="main",
    )


@pytest.fixture
def gateway(bot_config) -> InMemoryPersistenceGateway:
    return InMemoryPersistenceGateway(bot_config)


@pytest.fixture
def resolver() -> StaticCredentialResolver:
    return StaticCredentialResolver({"main": Credentials(api_key="key", api_secret="secret")})


@pytest.fixture
def tick_factory() -> ManualTickSourceFactory:
    return ManualTickSourceFactory()


@pytest.fixture
def controller(gateway, resolver, fake_exchange, tick_factory, clock):
    controller = ScheduleController(
        persistence=gateway,
        credential_resolver=resolver,
        client_factory=lambda credentials: fake_exchange,
        tick_source_factory=tick_factory,
        clock=clock,
    )
    yield controller
    controller.close(timeout=2)


@pytest.fixture
def order_rejection() -> OrderError:
    return OrderError("Order rejected: MIN_NOTIONAL", pair="BTC/USDT", side="buy")
