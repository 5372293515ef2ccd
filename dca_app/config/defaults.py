"""Default configuration parameters for the DCA engine."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ExchangeParams:
    """Exchange connection parameters."""
    exchange_id: str = "binance"
    sandbox: bool = True                      # Testnet unless explicitly disabled
    quote_asset: str = "USDT"
    base_asset: str = "BTC"
    timeout_ms: int = 10000

    @property
    def pair(self) -> str:
        return f"{self.base_asset}/{self.quote_asset}"


@dataclass(frozen=True)
class PolicyParams:
    """Purchase policy limits."""
    min_purchase_amount: float = 10.0         # Exchange minimum notional
    max_interval_minutes: Optional[float] = None


@dataclass(frozen=True)
class StorageParams:
    """Persistence parameters."""
    db_path: str = "dca.db"
    history_page_size: int = 50


@dataclass(frozen=True)
class SchedulerParams:
    """Scheduler parameters."""
    join_timeout_seconds: float = 5.0         # Worker shutdown wait on close()


@dataclass(frozen=True)
class CredentialParams:
    """Credential resolution parameters."""
    env_prefix: str = "DCA"


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""
    exchange: ExchangeParams
    policy: PolicyParams
    storage: StorageParams
    scheduler: SchedulerParams
    credentials: CredentialParams
    logging: LoggingParams


def get_default_config() -> EngineConfig:
    """Get the default configuration instance."""
    return EngineConfig(
        exchange=ExchangeParams(),
        policy=PolicyParams(),
        storage=StorageParams(),
        scheduler=SchedulerParams(),
        credentials=CredentialParams(),
        logging=LoggingParams(),
    )
