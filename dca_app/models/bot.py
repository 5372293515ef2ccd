"""Bot configuration model."""

import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


@dataclass(frozen=True)
class BotConfiguration:
    """
    User-owned DCA settings.

    Mutated only by user action through the persistence gateway; the engine
    treats every instance as read-only and reloads it on each tick.
    """

    purchase_amount: Optional[float] = None          # Notional in quote currency
    purchase_interval_minutes: Optional[float] = None  # Fractional allowed
    credentials_ref: Optional[str] = None            # Opaque handle for the resolver
    active_flag: bool = False
    updated_at: Optional[datetime] = None

    def missing_fields(self) -> list[str]:
        """Names of settings that are absent or not usable."""
        missing = []
        if not _is_positive_number(self.purchase_amount):
            missing.append("purchase_amount")
        if not _is_positive_number(self.purchase_interval_minutes):
            missing.append("purchase_interval_minutes")
        if not self.credentials_ref:
            missing.append("credentials_ref")
        return missing

    @property
    def has_purchase_settings(self) -> bool:
        """True when amount and interval are both set and positive."""
        missing = self.missing_fields()
        return "purchase_amount" not in missing and "purchase_interval_minutes" not in missing

    def with_active_flag(self, active: bool) -> "BotConfiguration":
        return replace(self, active_flag=active)

    def to_dict(self) -> dict[str, Any]:
        """Settings view for status responses. Never includes credentials."""
        return {
            "purchaseAmount": self.purchase_amount,
            "purchaseIntervalMinutes": self.purchase_interval_minutes,
            "hasCredentials": bool(self.credentials_ref),
            "isBotActive": self.active_flag,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
