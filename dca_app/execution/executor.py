"""
Per-tick purchase execution.

Each tick is one synchronous sequence:

    load configuration -> check quote balance -> fetch reference price
    -> submit market buy -> append PurchaseAttempt

A tick without usable purchase settings ends without writing a record.
Every other outcome, including exchange failures and unexpected errors,
produces exactly one PurchaseAttempt.
"""

from datetime import datetime
from typing import Optional

from ..errors import ExecutionError, InsufficientBalanceError, StartupError
from ..exchange.base import ExchangeClient, OrderSide
from ..logging.config import get_purchase_logger, log_purchase_outcome
from ..models.bot import BotConfiguration
from ..models.purchase import PurchaseAttempt
from ..persistence.base import PersistenceGateway
from ..utils.time import Clock, utc_now

purchase_logger = get_purchase_logger(__name__)


class PurchaseExecutor:
    """Executes purchase ticks against one exchange client."""

    def __init__(
        self,
        exchange: ExchangeClient,
        persistence: PersistenceGateway,
        pair: str = "BTC/USDT",
        quote_asset: str = "USDT",
        clock: Clock = utc_now,
    ) -> None:
        self.exchange = exchange
        self.persistence = persistence
        self.pair = pair
        self.quote_asset = quote_asset
        self.clock = clock
        self.logger = purchase_logger.bind(pair=pair)

    def execute_tick(self, fire_time: Optional[datetime] = None) -> Optional[PurchaseAttempt]:
        """
        Run one purchase tick.

        Args:
            fire_time: Scheduled fire time, used for logging only

        Returns:
            The recorded attempt, or None when the bot is not configured
        """
        timestamp = self.clock()
        log = self.logger.bind(
            tick_started_at=timestamp.isoformat(),
            fire_time=fire_time.isoformat() if fire_time else None,
        )
        log.info("Executing DCA purchase")

        try:
            config = self.persistence.get_active_configuration()
        except Exception as e:
            log.error("Failed to load configuration", error=str(e))
            attempt = PurchaseAttempt.failed(timestamp, 0.0, _failure_reason(e))
            self._record(attempt, log)
            return attempt

        if config is None or not config.has_purchase_settings:
            log.warning(
                "No purchase settings found, skipping tick",
                missing_fields=config.missing_fields() if config else ["configuration"],
            )
            return None

        attempt = self._attempt_purchase(timestamp, config, log)
        self._record(attempt, log)
        return attempt

    def _attempt_purchase(self, timestamp: datetime, config: BotConfiguration, log) -> PurchaseAttempt:
        amount = float(config.purchase_amount)

        try:
            balance = self.exchange.get_balance(self.quote_asset)
            log.debug("Current balance", asset=self.quote_asset, balance=balance)

            if balance < amount:
                raise InsufficientBalanceError(balance, amount, asset=self.quote_asset)

            reference_price = self.exchange.get_reference_price(self.pair)
            log.info("Reference price", price=reference_price)

            result = self.exchange.place_market_order(
                self.pair, OrderSide.BUY, amount, reference_price=reference_price
            )

            return PurchaseAttempt.succeeded(
                timestamp=timestamp,
                requested_amount=amount,
                filled_quantity=result.filled_quantity,
                fill_price=result.avg_price or reference_price,
                order_id=result.order_id,
            )

        except InsufficientBalanceError as e:
            log.error(
                "Insufficient balance",
                balance=e.balance,
                required=e.required,
                asset=e.asset,
            )
            return PurchaseAttempt.failed(timestamp, amount, e.message)
        except (ExecutionError, StartupError) as e:
            log.error("Purchase failed", error_type=type(e).__name__, error=e.message)
            return PurchaseAttempt.failed(timestamp, amount, _failure_reason(e))
        except Exception as e:
            log.exception("Unexpected error executing purchase", error_type=type(e).__name__)
            return PurchaseAttempt.failed(timestamp, amount, _failure_reason(e))

    def _record(self, attempt: PurchaseAttempt, log) -> None:
        log_purchase_outcome(log, attempt)
        try:
            self.persistence.append_purchase_attempt(attempt)
        except Exception as e:
            log.error(
                "Failed to record purchase attempt",
                status=attempt.status.value,
                order_id=attempt.order_id,
                error=str(e),
            )


def _failure_reason(error: Exception) -> str:
    return str(error) or type(error).__name__
