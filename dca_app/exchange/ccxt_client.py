"""ccxt-backed exchange client."""

from typing import Any, Optional

import ccxt
import structlog

from ..errors import ConnectivityError, OrderError
from .base import ExchangeClient, OrderResult, OrderSide
from .credentials import Credentials

logger = structlog.get_logger(__name__)

DEFAULT_MIN_NOTIONAL = 10.0
UNFILLED_ORDER_STATUSES = ("canceled", "expired", "rejected")


class CcxtExchangeClient(ExchangeClient):
    """
    Exchange client over a ccxt unified exchange.

    Runs against the exchange sandbox (testnet) unless sandbox=False.
    """

    def __init__(
        self,
        credentials: Credentials,
        exchange_id: str = "binance",
        sandbox: bool = True,
        timeout_ms: int = 10000,
        quote_asset: str = "USDT",
        min_notional: float = DEFAULT_MIN_NOTIONAL,
        exchange: Optional[Any] = None,
    ):
        self.exchange_id = exchange_id
        self.sandbox = sandbox
        self.quote_asset = quote_asset
        self.min_notional = min_notional
        self.logger = logger.bind(exchange=exchange_id, sandbox=sandbox)

        if exchange is None:
            exchange = self._create_exchange(credentials, exchange_id, sandbox, timeout_ms)
        self._exchange = exchange

    @staticmethod
    def _create_exchange(credentials: Credentials, exchange_id: str, sandbox: bool, timeout_ms: int) -> Any:
        try:
            exchange_class = getattr(ccxt, exchange_id)
        except AttributeError:
            raise ConnectivityError(f"Unsupported exchange '{exchange_id}'", exchange=exchange_id) from None

        exchange = exchange_class({
            "apiKey": credentials.api_key,
            "secret": credentials.api_secret,
            "enableRateLimit": True,
            "timeout": timeout_ms,
        })
        if sandbox:
            try:
                exchange.set_sandbox_mode(True)
            except ccxt.NotSupported as e:
                raise ConnectivityError(
                    f"Exchange '{exchange_id}' has no sandbox mode", exchange=exchange_id, cause=e
                ) from e
        return exchange

    def _connectivity_error(self, action: str, error: Exception) -> ConnectivityError:
        self.logger.error("Exchange request failed", action=action, error=str(error))
        return ConnectivityError(
            f"API connection failed: {error}",
            exchange=self.exchange_id,
            cause=error,
        )

    def test_connection(self) -> float:
        balance = self.get_balance(self.quote_asset)
        self.logger.info("Exchange connection verified", quote_asset=self.quote_asset, balance=balance)
        return balance

    def get_balance(self, asset: str) -> float:
        try:
            balances = self._exchange.fetch_balance()
        except ccxt.BaseError as e:
            raise self._connectivity_error("fetch_balance", e) from e

        free = balances.get("free") or {}
        return float(free.get(asset) or 0.0)

    def get_reference_price(self, pair: str) -> float:
        try:
            ticker = self._exchange.fetch_ticker(pair)
        except ccxt.BaseError as e:
            raise self._connectivity_error("fetch_ticker", e) from e

        price = ticker.get("last") or ticker.get("close")
        if not price:
            raise ConnectivityError(f"No reference price available for {pair}", exchange=self.exchange_id)
        return float(price)

    def place_market_order(
        self,
        pair: str,
        side: OrderSide,
        notional_amount: float,
        reference_price: Optional[float] = None,
    ) -> OrderResult:
        side = OrderSide(side)
        if notional_amount < self.min_notional:
            raise OrderError(
                f"Order amount {notional_amount:g} {self.quote_asset} is below minimum "
                f"{self.min_notional:g} {self.quote_asset}",
                pair=pair,
                side=side.value,
            )

        if reference_price is None:
            reference_price = self.get_reference_price(pair)

        try:
            if side == OrderSide.BUY and self._exchange.has.get("createMarketBuyOrderWithCost"):
                order = self._exchange.create_market_buy_order_with_cost(pair, notional_amount)
            else:
                amount = self._exchange.amount_to_precision(pair, notional_amount / reference_price)
                order = self._exchange.create_order(pair, "market", side.value, float(amount))
        except (ccxt.NetworkError, ccxt.AuthenticationError) as e:
            raise self._connectivity_error("create_order", e) from e
        except ccxt.BaseError as e:
            self.logger.error("Order rejected", pair=pair, side=side.value, error=str(e))
            raise OrderError(str(e) or "Purchase failed", pair=pair, side=side.value) from e

        order_id = order.get("id")
        if not order_id:
            raise OrderError("Exchange returned an order without an id", pair=pair, side=side.value)

        status = order.get("status")
        if status in UNFILLED_ORDER_STATUSES:
            self.logger.error("Order not filled", pair=pair, order_id=order_id, status=status)
            raise OrderError(f"Order {order_id} {status}", pair=pair, side=side.value)

        filled = order.get("filled")
        if filled is None:
            # Exchanges that ack without fill details
            filled = notional_amount / reference_price
        elif filled <= 0:
            self.logger.error("Order not filled", pair=pair, order_id=order_id, status=status)
            raise OrderError(f"Order {order_id} was not filled", pair=pair, side=side.value)

        avg_price = order.get("average") or order.get("price") or reference_price

        self.logger.info(
            "Market order filled",
            pair=pair,
            side=side.value,
            order_id=order_id,
            filled_quantity=filled,
            avg_price=avg_price,
        )
        return OrderResult(order_id=str(order_id), filled_quantity=float(filled), avg_price=float(avg_price))
