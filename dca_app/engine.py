"""
Main DCA engine coordinator.

Wires configuration, persistence, credential resolution, the exchange client
factory and the schedule controller, and exposes the command surface used by
the surrounding application. Every command returns a plain dictionary.
"""

from pathlib import Path
from typing import Any, Optional, Union

import structlog

from .config.defaults import EngineConfig
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .errors import ConfigurationError, ConnectivityError, PersistenceError, StartupError
from .exchange.credentials import CredentialResolver, Credentials, EnvCredentialResolver
from .exchange.base import ExchangeClient
from .exchange.ccxt_client import CcxtExchangeClient
from .models.bot import BotConfiguration
from .persistence.base import PersistenceGateway
from .persistence.sqlite_gateway import SqlitePersistenceGateway
from .reporting.export import attempts_to_csv, attempts_to_json
from .scheduler.controller import ClientFactory, ScheduleController, TickSourceFactory
from .scheduler.models import ScheduleState
from .utils.time import Clock, utc_now

logger = structlog.get_logger(__name__)

EXPORT_FORMATS = ("csv", "json")


def _coerce_number(value: Any) -> Any:
    """Accept numeric strings from form input; leave anything else for validation."""
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return value
    return value


def _error_response(error: Exception) -> dict[str, Any]:
    message = getattr(error, "message", None) or str(error)
    return {"success": False, "error": type(error).__name__, "message": message}


class DcaEngine:
    """
    Coordinator for the recurring purchase bot.

    Collaborators default to the SQLite gateway, environment credentials and
    the ccxt exchange client built from the engine configuration.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        config_dir: Optional[Union[str, Path]] = None,
        persistence: Optional[PersistenceGateway] = None,
        credential_resolver: Optional[CredentialResolver] = None,
        client_factory: Optional[ClientFactory] = None,
        tick_source_factory: Optional[TickSourceFactory] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.logger = logger

        if config is None:
            config = ConfigLoader.create(Path(config_dir) if config_dir else None).build_engine_config()
        self.config = config

        self.persistence = persistence or SqlitePersistenceGateway(config.storage.db_path)
        self.credential_resolver = credential_resolver or EnvCredentialResolver(config.credentials.env_prefix)
        self.client_factory = client_factory or self._default_client_factory

        self.controller = ScheduleController(
            persistence=self.persistence,
            credential_resolver=self.credential_resolver,
            client_factory=self.client_factory,
            pair=config.exchange.pair,
            quote_asset=config.exchange.quote_asset,
            min_purchase_amount=config.policy.min_purchase_amount,
            max_interval_minutes=config.policy.max_interval_minutes,
            tick_source_factory=tick_source_factory,
            clock=clock,
        )

        self.logger.info(
            "DCA engine initialized",
            pair=config.exchange.pair,
            exchange=config.exchange.exchange_id,
            sandbox=config.exchange.sandbox,
        )

    def _default_client_factory(self, credentials: Credentials) -> ExchangeClient:
        params = self.config.exchange
        return CcxtExchangeClient(
            credentials,
            exchange_id=params.exchange_id,
            sandbox=params.sandbox,
            timeout_ms=params.timeout_ms,
            quote_asset=params.quote_asset,
            min_notional=self.config.policy.min_purchase_amount,
        )

    # Bot control

    def start(self) -> dict[str, Any]:
        try:
            return self.controller.start().to_dict()
        except (StartupError, PersistenceError) as e:
            self.logger.error("Failed to start DCA bot", error_type=type(e).__name__, error=str(e))
            return _error_response(e)

    def stop(self) -> dict[str, Any]:
        try:
            return self.controller.stop().to_dict()
        except PersistenceError as e:
            self.logger.error("Failed to persist stop", error=str(e))
            return _error_response(e)

    def status(self) -> dict[str, Any]:
        return self.controller.status().to_dict()

    def resume_if_active(self) -> dict[str, Any]:
        """Restart the schedule after a process restart if it was left active."""
        config = self.persistence.get_active_configuration()
        if config is None or not config.active_flag:
            return {"success": True, "message": "DCA bot was not active"}

        self.logger.info("Resuming DCA bot from persisted active flag")
        result = self.start()
        if not result["success"]:
            self.persistence.set_active_flag(False)
        return result

    def close(self) -> None:
        self.controller.close(timeout=self.config.scheduler.join_timeout_seconds)

    # Settings

    def get_settings(self) -> dict[str, Any]:
        config = self.persistence.get_active_configuration() or BotConfiguration()
        return config.to_dict()

    def update_settings(self, purchase_amount: Any, purchase_interval_minutes: Any) -> dict[str, Any]:
        params = {
            "purchase_amount": _coerce_number(purchase_amount),
            "purchase_interval_minutes": _coerce_number(purchase_interval_minutes),
        }
        errors = ConfigValidator.validate_bot_settings(
            params,
            min_purchase_amount=self.config.policy.min_purchase_amount,
            max_interval_minutes=self.config.policy.max_interval_minutes,
        )
        if errors:
            self.logger.warning("Rejected settings update", errors=[e.field for e in errors])
            return {
                "success": False,
                "error": errors[0].message,
                "fields": [e.field for e in errors],
            }

        try:
            self.persistence.update_purchase_settings(
                float(params["purchase_amount"]), float(params["purchase_interval_minutes"])
            )
        except PersistenceError as e:
            return _error_response(e)

        if self.controller.state == ScheduleState.RUNNING:
            self.logger.info("Settings updated while running; interval applies after restart")
        return {"success": True}

    def save_credentials_ref(self, credentials_ref: str) -> dict[str, Any]:
        """Store the credentials handle after checking that it resolves and connects."""
        try:
            credentials = self.credential_resolver.resolve(credentials_ref)
            balance = self.client_factory(credentials).test_connection()
            self.persistence.save_credentials_ref(credentials_ref)
        except (StartupError, PersistenceError) as e:
            return _error_response(e)
        except Exception as e:
            return _error_response(ConnectivityError(f"API connection failed: {e}", cause=e))
        return {"success": True, "balance": {self.config.exchange.quote_asset: balance}}

    def test_connection(self) -> dict[str, Any]:
        config = self.persistence.get_active_configuration()
        try:
            if config is None or not config.credentials_ref:
                raise ConfigurationError("API keys not configured", missing_fields=["credentials_ref"])
            credentials = self.credential_resolver.resolve(config.credentials_ref)
            balance = self.client_factory(credentials).test_connection()
        except StartupError as e:
            return _error_response(e)
        except Exception as e:
            return _error_response(ConnectivityError(f"API connection failed: {e}", cause=e))
        return {"success": True, "balance": {self.config.exchange.quote_asset: balance}}

    # History

    def history(self, limit: Optional[int] = None, offset: int = 0) -> list[dict[str, Any]]:
        if limit is None:
            limit = self.config.storage.history_page_size
        return [attempt.to_record() for attempt in self.persistence.list_attempts(limit, offset)]

    def statistics(self) -> dict[str, Any]:
        return self.persistence.get_statistics().to_dict()

    def export_history(self, fmt: str = "csv", limit: int = 10000) -> Union[str, bytes]:
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format '{fmt}', expected one of {EXPORT_FORMATS}")

        attempts = self.persistence.list_attempts(limit, 0)
        if fmt == "csv":
            return attempts_to_csv(attempts)
        return attempts_to_json(attempts)
