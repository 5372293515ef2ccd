"""
Purchase attempt history models.

A PurchaseAttempt is created exactly once per executed tick and is never
mutated afterwards. Success records carry an exchange order id; failed
records carry a failure reason; never both.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..errors.execution import INSUFFICIENT_BALANCE_REASON
from ..utils.time import ensure_utc, format_timestamp, parse_timestamp


class AttemptStatus(str, Enum):
    """Outcome of a purchase tick."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class PurchaseAttempt:
    """Immutable record of one executed purchase tick."""

    timestamp: datetime
    requested_amount: float
    status: AttemptStatus
    filled_quantity: float = 0.0
    fill_price: float = 0.0
    order_id: Optional[str] = None
    failure_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status == AttemptStatus.SUCCESS:
            if not self.order_id:
                raise ValueError("Successful purchase attempt requires an order id")
            if self.failure_reason is not None:
                raise ValueError("Successful purchase attempt cannot carry a failure reason")
        else:
            if self.order_id is not None:
                raise ValueError("Failed purchase attempt cannot carry an order id")
            if not self.failure_reason:
                raise ValueError("Failed purchase attempt requires a failure reason")
        # Frozen dataclass; normalize timezone through object.__setattr__
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))

    @classmethod
    def succeeded(
        cls,
        timestamp: datetime,
        requested_amount: float,
        filled_quantity: float,
        fill_price: float,
        order_id: str,
    ) -> "PurchaseAttempt":
        return cls(
            timestamp=timestamp,
            requested_amount=requested_amount,
            status=AttemptStatus.SUCCESS,
            filled_quantity=filled_quantity,
            fill_price=fill_price,
            order_id=str(order_id),
        )

    @classmethod
    def failed(
        cls,
        timestamp: datetime,
        requested_amount: float,
        failure_reason: str,
    ) -> "PurchaseAttempt":
        return cls(
            timestamp=timestamp,
            requested_amount=requested_amount,
            status=AttemptStatus.FAILED,
            failure_reason=failure_reason or "Unknown error",
        )

    @property
    def is_success(self) -> bool:
        return self.status == AttemptStatus.SUCCESS

    def to_record(self) -> dict[str, Any]:
        """Export shape used by history responses and reports."""
        return {
            "timestamp": format_timestamp(self.timestamp),
            "requestedAmount": self.requested_amount,
            "filledQuantity": self.filled_quantity,
            "fillPrice": self.fill_price,
            "orderId": self.order_id,
            "status": self.status.value,
            "failureReason": self.failure_reason,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "PurchaseAttempt":
        timestamp = record["timestamp"]
        if isinstance(timestamp, str):
            timestamp = parse_timestamp(timestamp)
        return cls(
            timestamp=timestamp,
            requested_amount=float(record["requestedAmount"]),
            status=AttemptStatus(record["status"]),
            filled_quantity=float(record.get("filledQuantity") or 0.0),
            fill_price=float(record.get("fillPrice") or 0.0),
            order_id=record.get("orderId"),
            failure_reason=record.get("failureReason"),
        )


@dataclass(frozen=True)
class PurchaseStatistics:
    """Aggregate view over the purchase history."""

    total_purchases: int = 0
    total_spent: float = 0.0
    total_quantity: float = 0.0
    avg_price: float = 0.0
    successful_purchases: int = 0
    failed_purchases: int = 0

    @property
    def success_rate(self) -> str:
        """Percentage of successful attempts with two decimals."""
        if self.total_purchases <= 0:
            return "0.00"
        return f"{self.successful_purchases / self.total_purchases * 100:.2f}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_purchases": self.total_purchases,
            "total_spent": self.total_spent,
            "total_quantity": self.total_quantity,
            "avg_price": self.avg_price,
            "successful_purchases": self.successful_purchases,
            "failed_purchases": self.failed_purchases,
            "success_rate": self.success_rate,
        }
