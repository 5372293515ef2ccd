"""Persistence gateway contract consumed by the scheduler and executor."""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from ..models.bot import BotConfiguration
from ..models.purchase import PurchaseAttempt, PurchaseStatistics
from ..utils.time import utc_now

DEFAULT_PAGE_SIZE = 50


class PersistenceGateway(ABC):
    """
    Storage for the single bot configuration and the append-only history.

    Implementations raise PersistenceError when the underlying store fails.
    """

    @abstractmethod
    def get_active_configuration(self) -> Optional[BotConfiguration]:
        """Return the current configuration, or None if nothing was saved."""

    @abstractmethod
    def save_configuration(self, config: BotConfiguration) -> None:
        """Insert or replace the configuration."""

    @abstractmethod
    def set_active_flag(self, active: bool) -> None:
        """Persist whether the schedule is running. No-op without a configuration."""

    @abstractmethod
    def append_purchase_attempt(self, attempt: PurchaseAttempt) -> None:
        """Append one attempt to the history."""

    @abstractmethod
    def list_attempts(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> list[PurchaseAttempt]:
        """Return attempts newest first."""

    @abstractmethod
    def get_statistics(self) -> PurchaseStatistics:
        """Aggregate the whole history."""

    def update_purchase_settings(self, purchase_amount: float, purchase_interval_minutes: float) -> BotConfiguration:
        """Change amount and interval, keeping credentials and active flag."""
        current = self.get_active_configuration() or BotConfiguration()
        updated = replace(
            current,
            purchase_amount=purchase_amount,
            purchase_interval_minutes=purchase_interval_minutes,
            updated_at=utc_now(),
        )
        self.save_configuration(updated)
        return updated

    def save_credentials_ref(self, credentials_ref: str) -> BotConfiguration:
        """Change the credentials handle, keeping the purchase settings."""
        current = self.get_active_configuration() or BotConfiguration()
        updated = replace(current, credentials_ref=credentials_ref, updated_at=utc_now())
        self.save_configuration(updated)
        return updated


def check_page(limit: int, offset: int) -> None:
    """Reject negative paging arguments."""
    if limit < 0 or offset < 0:
        raise ValueError(f"limit and offset must be non-negative (got limit={limit}, offset={offset})")
