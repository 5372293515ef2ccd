"""Exchange client capability contract."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OrderSide(str, Enum):
    """Market order direction."""
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class OrderResult:
    """Fill report for a market order."""
    order_id: str
    filled_quantity: float
    avg_price: float


class ExchangeClient(ABC):
    """
    Balance, reference price and market order submission.

    Query methods raise ConnectivityError when the exchange cannot be
    reached or rejects the credentials; place_market_order raises OrderError
    when the order is refused.
    """

    @abstractmethod
    def test_connection(self) -> float:
        """Probe connectivity and credentials. Returns the free quote balance."""

    @abstractmethod
    def get_balance(self, asset: str) -> float:
        """Free balance of an asset."""

    @abstractmethod
    def get_reference_price(self, pair: str) -> float:
        """Last traded price for a pair such as 'BTC/USDT'."""

    @abstractmethod
    def place_market_order(
        self,
        pair: str,
        side: OrderSide,
        notional_amount: float,
        reference_price: Optional[float] = None,
    ) -> OrderResult:
        """
        Submit a market order sized in quote currency.

        reference_price is the caller's latest quote; implementations fetch
        their own when it is None.
        """
