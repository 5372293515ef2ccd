"""
Start-time error classifications.

These exceptions are raised synchronously to the caller of start() and are
never retried. No schedule is created when one of them is raised.
"""

from typing import Optional, Dict, Any


class StartupError(Exception):
    """Base class for errors that prevent the schedule from starting."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = False


class ConfigurationError(StartupError):
    """Bot settings are missing or invalid."""

    def __init__(self, message: str, missing_fields: Optional[list] = None,
                 invalid_fields: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or []


class ConnectivityError(StartupError):
    """Exchange is unreachable or rejected the credentials."""

    def __init__(self, message: str, exchange: Optional[str] = None,
                 cause: Optional[Exception] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.exchange = exchange
        self.cause = cause
