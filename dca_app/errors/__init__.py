"""
Error classification for the DCA scheduling and purchase engine.

Start-time errors are fatal to the start() operation and leave the schedule
stopped. Execution errors are tick-local and are recorded as failed
purchase attempts instead of propagating.
"""

from .startup import (
    StartupError,
    ConfigurationError,
    ConnectivityError,
)
from .execution import (
    INSUFFICIENT_BALANCE_REASON,
    ExecutionError,
    InsufficientBalanceError,
    OrderError,
)
from .system_failures import (
    SystemFailureError,
    PersistenceError,
    ScheduleStateError,
)

__all__ = [
    # Start-time Errors
    "StartupError",
    "ConfigurationError",
    "ConnectivityError",
    # Tick Execution Errors
    "INSUFFICIENT_BALANCE_REASON",
    "ExecutionError",
    "InsufficientBalanceError",
    "OrderError",
    # System Failures
    "SystemFailureError",
    "PersistenceError",
    "ScheduleStateError",
]
