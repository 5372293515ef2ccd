"""
Tick execution error classifications.

Raised while a single purchase tick runs. The executor converts every one of
them into a failed purchase attempt; the schedule keeps running.
"""

from typing import Optional, Dict, Any

INSUFFICIENT_BALANCE_REASON = "insufficient balance"


class ExecutionError(Exception):
    """Base class for recoverable failures inside a purchase tick."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = True


class InsufficientBalanceError(ExecutionError):
    """Quote balance is lower than the configured purchase amount."""

    def __init__(self, balance: float, required: float, asset: str = "USDT", **kwargs):
        super().__init__(INSUFFICIENT_BALANCE_REASON, **kwargs)
        self.balance = balance
        self.required = required
        self.asset = asset


class OrderError(ExecutionError):
    """Order was rejected, timed out, or could not be submitted."""

    def __init__(self, message: str, pair: Optional[str] = None,
                 side: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.pair = pair
        self.side = side
