"""Tests for the ccxt exchange client with a mocked ccxt exchange."""

from unittest.mock import Mock, patch

import ccxt
import pytest

from dca_app.errors import ConnectivityError, OrderError
from dca_app.exchange.base import OrderResult, OrderSide
from dca_app.exchange.ccxt_client import CcxtExchangeClient
from dca_app.exchange.credentials import Credentials

CREDENTIALS = Credentials(api_key="key", api_secret="secret")


def make_client(exchange: Mock, **kwargs) -> CcxtExchangeClient:
    return CcxtExchangeClient(CREDENTIALS, exchange=exchange, **kwargs)


@pytest.fixture
def exchange() -> Mock:
    exchange = Mock()
    exchange.has = {"createMarketBuyOrderWithCost": True}
    exchange.fetch_balance.return_value = {"free": {"USDT": 100.0, "BTC": 0.01}}
    exchange.fetch_ticker.return_value = {"last": 30000.0}
    exchange.create_market_buy_order_with_cost.return_value = {
        "id": 12345, "filled": 0.0005, "average": 30000.0,
    }
    return exchange


class TestExchangeConstruction:
    """Creating the underlying ccxt exchange."""

    def test_sandbox_enabled_by_default(self):
        with patch.object(ccxt, "binance") as binance_class:
            CcxtExchangeClient(CREDENTIALS)

        config = binance_class.call_args[0][0]
        assert config["apiKey"] == "key"
        assert config["secret"] == "secret"
        assert config["enableRateLimit"] is True
        binance_class.return_value.set_sandbox_mode.assert_called_once_with(True)

    def test_live_mode_skips_sandbox(self):
        with patch.object(ccxt, "binance") as binance_class:
            CcxtExchangeClient(CREDENTIALS, sandbox=False)

        binance_class.return_value.set_sandbox_mode.assert_not_called()

    def test_unknown_exchange(self):
        with pytest.raises(ConnectivityError):
            CcxtExchangeClient(CREDENTIALS, exchange_id="no_such_exchange")


class TestQueries:
    """Balance and price queries."""

    def test_get_balance(self, exchange):
        assert make_client(exchange).get_balance("USDT") == 100.0

    def test_missing_asset_is_zero(self, exchange):
        assert make_client(exchange).get_balance("ETH") == 0.0

    def test_test_connection_returns_quote_balance(self, exchange):
        assert make_client(exchange).test_connection() == 100.0

    def test_network_error_maps_to_connectivity_error(self, exchange):
        exchange.fetch_balance.side_effect = ccxt.NetworkError("connection reset")

        with pytest.raises(ConnectivityError) as exc_info:
            make_client(exchange).test_connection()

        assert "connection reset" in exc_info.value.message

    def test_auth_error_maps_to_connectivity_error(self, exchange):
        exchange.fetch_balance.side_effect = ccxt.AuthenticationError("Invalid API-key")

        with pytest.raises(ConnectivityError):
            make_client(exchange).get_balance("USDT")

    def test_reference_price(self, exchange):
        assert make_client(exchange).get_reference_price("BTC/USDT") == 30000.0
        exchange.fetch_ticker.assert_called_once_with("BTC/USDT")

    def test_reference_price_missing(self, exchange):
        exchange.fetch_ticker.return_value = {"last": None, "close": None}

        with pytest.raises(ConnectivityError):
            make_client(exchange).get_reference_price("BTC/USDT")


class TestMarketOrders:
    """Market order submission."""

    def test_buy_with_cost(self, exchange):
        result = make_client(exchange).place_market_order("BTC/USDT", OrderSide.BUY, 15.0)

        assert result == OrderResult(order_id="12345", filled_quantity=0.0005, avg_price=30000.0)
        exchange.create_market_buy_order_with_cost.assert_called_once_with("BTC/USDT", 15.0)

    def test_below_minimum_notional(self, exchange):
        with pytest.raises(OrderError) as exc_info:
            make_client(exchange).place_market_order("BTC/USDT", OrderSide.BUY, 5.0)

        assert exc_info.value.message == "Order amount 5 USDT is below minimum 10 USDT"
        exchange.create_market_buy_order_with_cost.assert_not_called()

    def test_falls_back_to_amount_order(self, exchange):
        exchange.has = {}
        exchange.amount_to_precision.return_value = "0.000500"
        exchange.create_order.return_value = {"id": "abc", "filled": 0.0005, "average": 30010.0}

        result = make_client(exchange).place_market_order("BTC/USDT", OrderSide.BUY, 15.0)

        exchange.create_order.assert_called_once_with("BTC/USDT", "market", "buy", 0.0005)
        assert result.avg_price == 30010.0

    def test_missing_fill_details_use_reference_price(self, exchange):
        exchange.create_market_buy_order_with_cost.return_value = {"id": "1", "filled": None, "average": None}

        result = make_client(exchange).place_market_order("BTC/USDT", "buy", 15.0)

        assert result.filled_quantity == pytest.approx(0.0005)
        assert result.avg_price == 30000.0

    @pytest.mark.parametrize("status", ["canceled", "expired", "rejected"])
    def test_unfilled_status_is_order_error(self, exchange, status):
        exchange.create_market_buy_order_with_cost.return_value = {"id": "42", "status": status, "filled": 0.0}

        with pytest.raises(OrderError) as exc_info:
            make_client(exchange).place_market_order("BTC/USDT", OrderSide.BUY, 15.0)

        assert exc_info.value.message == f"Order 42 {status}"

    def test_zero_fill_is_order_error(self, exchange):
        exchange.create_market_buy_order_with_cost.return_value = {"id": "42", "status": "closed", "filled": 0.0}

        with pytest.raises(OrderError) as exc_info:
            make_client(exchange).place_market_order("BTC/USDT", OrderSide.BUY, 15.0)

        assert exc_info.value.message == "Order 42 was not filled"

    def test_supplied_reference_price_skips_ticker(self, exchange):
        exchange.has = {}
        exchange.amount_to_precision.return_value = "0.000600"
        exchange.create_order.return_value = {"id": "abc", "filled": None, "average": None}

        result = make_client(exchange).place_market_order(
            "BTC/USDT", OrderSide.BUY, 15.0, reference_price=25000.0
        )

        exchange.fetch_ticker.assert_not_called()
        exchange.amount_to_precision.assert_called_once_with("BTC/USDT", 15.0 / 25000.0)
        assert result.avg_price == 25000.0
        assert result.filled_quantity == pytest.approx(0.0006)

    def test_exchange_rejection_maps_to_order_error(self, exchange):
        exchange.create_market_buy_order_with_cost.side_effect = ccxt.InsufficientFunds("Account has insufficient balance")

        with pytest.raises(OrderError) as exc_info:
            make_client(exchange).place_market_order("BTC/USDT", OrderSide.BUY, 15.0)

        assert exc_info.value.pair == "BTC/USDT"
        assert exc_info.value.side == "buy"

    def test_timeout_maps_to_connectivity_error(self, exchange):
        exchange.create_market_buy_order_with_cost.side_effect = ccxt.RequestTimeout("timed out")

        with pytest.raises(ConnectivityError):
            make_client(exchange).place_market_order("BTC/USDT", OrderSide.BUY, 15.0)

    def test_order_without_id(self, exchange):
        exchange.create_market_buy_order_with_cost.return_value = {"filled": 0.0005}

        with pytest.raises(OrderError):
            make_client(exchange).place_market_order("BTC/USDT", OrderSide.BUY, 15.0)
