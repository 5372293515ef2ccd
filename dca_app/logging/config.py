"""
Centralized logging configuration for the DCA purchase engine.

This module provides standardized logging configuration using structlog
for all components. Scheduler and purchase subsystems get bound loggers so
that state changes and purchase outcomes form a searchable audit trail.
"""
import logging
import sys
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.types import FilteringBoundLogger

if TYPE_CHECKING:
    from ..models.purchase import PurchaseAttempt


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_scheduler_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the scheduler subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for schedule state changes
    """
    return get_logger(name).bind(
        subsystem="scheduler",
        audit_trail=True
    )


def get_purchase_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the purchase subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for purchase ticks
    """
    return get_logger(name).bind(
        subsystem="purchase",
        audit_trail=True
    )


def log_state_transition(
    logger: FilteringBoundLogger,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a schedule state transition with standardized format.

    Args:
        logger: Structlog logger instance
        from_state: Current state
        to_state: Target state
        trigger: Operation that caused the transition (start, stop, resume)
        context: Additional context data
    """
    bound_logger = logger.bind(
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")


def log_purchase_outcome(
    logger: FilteringBoundLogger,
    attempt: "PurchaseAttempt",
) -> None:
    """
    Log a recorded purchase attempt.

    Successful attempts are logged at info level, failed ones at warning.
    """
    bound_logger = logger.bind(
        status=attempt.status.value,
        requested_amount=attempt.requested_amount,
        filled_quantity=attempt.filled_quantity,
        fill_price=attempt.fill_price,
        order_id=attempt.order_id,
        timestamp=attempt.timestamp.isoformat(),
    )

    if attempt.is_success:
        bound_logger.info("Purchase succeeded")
    else:
        bound_logger.warning("Purchase failed", failure_reason=attempt.failure_reason)
