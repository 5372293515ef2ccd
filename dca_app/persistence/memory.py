"""In-process persistence gateway for tests and dry runs."""

import threading
from typing import Optional

from ..models.bot import BotConfiguration
from ..models.purchase import PurchaseAttempt, PurchaseStatistics
from .base import DEFAULT_PAGE_SIZE, PersistenceGateway, check_page


class InMemoryPersistenceGateway(PersistenceGateway):
    """List-backed gateway with the same ordering rules as the SQLite one."""

    def __init__(self, config: Optional[BotConfiguration] = None):
        self._lock = threading.Lock()
        self._config = config
        self._attempts: list[PurchaseAttempt] = []

    def get_active_configuration(self) -> Optional[BotConfiguration]:
        with self._lock:
            return self._config

    def save_configuration(self, config: BotConfiguration) -> None:
        with self._lock:
            self._config = config

    def set_active_flag(self, active: bool) -> None:
        with self._lock:
            if self._config is not None:
                self._config = self._config.with_active_flag(active)

    def append_purchase_attempt(self, attempt: PurchaseAttempt) -> None:
        with self._lock:
            self._attempts.append(attempt)

    def list_attempts(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> list[PurchaseAttempt]:
        check_page(limit, offset)
        with self._lock:
            # Ties on timestamp fall back to insertion order
            indexed = list(enumerate(self._attempts))
        indexed.sort(key=lambda item: (item[1].timestamp, item[0]), reverse=True)
        return [attempt for _, attempt in indexed[offset:offset + limit]]

    def get_statistics(self) -> PurchaseStatistics:
        with self._lock:
            attempts = list(self._attempts)

        successes = [a for a in attempts if a.is_success]
        return PurchaseStatistics(
            total_purchases=len(attempts),
            total_spent=sum(a.requested_amount for a in successes),
            total_quantity=sum(a.filled_quantity for a in successes),
            avg_price=(sum(a.fill_price for a in successes) / len(successes)) if successes else 0.0,
            successful_purchases=len(successes),
            failed_purchases=len(attempts) - len(successes),
        )
