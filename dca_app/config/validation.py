"""Configuration validation utilities."""

import math
from dataclasses import dataclass
from typing import Any, Optional

MIN_PURCHASE_AMOUNT = 10.0


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class ConfigValidator:
    """Validates engine parameters and user bot settings."""

    @staticmethod
    def validate_bot_settings(
        params: dict[str, Any],
        min_purchase_amount: float = MIN_PURCHASE_AMOUNT,
        max_interval_minutes: Optional[float] = None,
    ) -> list[ValidationError]:
        """Validate user-supplied purchase settings."""
        errors = []

        amount = params.get("purchase_amount")
        if amount is None:
            errors.append(ValidationError(
                field="purchase_amount",
                message="Purchase amount is required",
                value=amount
            ))
        elif not _is_number(amount):
            errors.append(ValidationError(
                field="purchase_amount",
                message="Must be a number",
                value=amount
            ))
        elif amount < min_purchase_amount:
            errors.append(ValidationError(
                field="purchase_amount",
                message=f"Minimum purchase amount is {min_purchase_amount:g} USDT",
                value=amount
            ))

        interval = params.get("purchase_interval_minutes")
        if interval is None:
            errors.append(ValidationError(
                field="purchase_interval_minutes",
                message="Purchase interval is required",
                value=interval
            ))
        elif not _is_number(interval):
            errors.append(ValidationError(
                field="purchase_interval_minutes",
                message="Must be a number",
                value=interval
            ))
        elif interval <= 0:
            errors.append(ValidationError(
                field="purchase_interval_minutes",
                message="Interval must be greater than 0",
                value=interval
            ))
        elif max_interval_minutes is not None and interval > max_interval_minutes:
            errors.append(ValidationError(
                field="purchase_interval_minutes",
                message=f"Interval must not exceed {max_interval_minutes:g} minutes",
                value=interval
            ))

        if "credentials_ref" in params:
            ref = params["credentials_ref"]
            if not isinstance(ref, str) or not ref.strip():
                errors.append(ValidationError(
                    field="credentials_ref",
                    message="Must be a non-empty string",
                    value=ref
                ))

        return errors

    @staticmethod
    def validate_exchange_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate exchange parameters."""
        errors = []

        for name in ("exchange_id", "quote_asset", "base_asset"):
            if name in params:
                value = params[name]
                if not isinstance(value, str) or not value.strip():
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a non-empty string",
                        value=value
                    ))

        if "sandbox" in params and not isinstance(params["sandbox"], bool):
            errors.append(ValidationError(
                field="sandbox",
                message="Must be a boolean",
                value=params["sandbox"]
            ))

        if "timeout_ms" in params:
            value = params["timeout_ms"]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                errors.append(ValidationError(
                    field="timeout_ms",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_policy_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate purchase policy parameters."""
        errors = []

        if "min_purchase_amount" in params:
            value = params["min_purchase_amount"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="min_purchase_amount",
                    message="Must be a positive number",
                    value=value
                ))

        if params.get("max_interval_minutes") is not None:
            value = params["max_interval_minutes"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="max_interval_minutes",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_storage_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate storage parameters."""
        errors = []

        if "db_path" in params:
            value = params["db_path"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field="db_path",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "history_page_size" in params:
            value = params["history_page_size"]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                errors.append(ValidationError(
                    field="history_page_size",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete engine configuration."""
        errors = []

        if "exchange" in config:
            errors.extend(ConfigValidator.validate_exchange_params(config["exchange"]))

        if "policy" in config:
            errors.extend(ConfigValidator.validate_policy_params(config["policy"]))

        if "storage" in config:
            errors.extend(ConfigValidator.validate_storage_params(config["storage"]))

        return errors


def format_validation_errors(errors: list[ValidationError]) -> str:
    """Render validation errors into one message line."""
    return "; ".join(f"{err.field}: {err.message} (got: {err.value})" for err in errors)
