"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    CredentialParams,
    EngineConfig,
    ExchangeParams,
    LoggingParams,
    PolicyParams,
    SchedulerParams,
    StorageParams,
    get_default_config,
)
from .validation import ConfigValidator, format_validation_errors

CONFIG_FILENAME = "engine.yaml"

_SECTION_TYPES = {
    "exchange": ExchangeParams,
    "policy": PolicyParams,
    "storage": StorageParams,
    "scheduler": SchedulerParams,
    "credentials": CredentialParams,
    "logging": LoggingParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: EngineConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load engine overrides from the YAML file, if present."""
        config_file = self.config_dir / CONFIG_FILENAME

        if not config_file.exists():
            return {}

        try:
            with open(config_file) as f:
                file_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Unable to parse {config_file}: {e}",
                invalid_fields=[CONFIG_FILENAME],
            ) from e

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"{config_file} must contain a mapping at the top level",
                invalid_fields=[CONFIG_FILENAME],
            )
        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. engine.yaml in the config directory
        3. Built-in defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def build_engine_config(self, overrides: Optional[dict[str, Any]] = None) -> EngineConfig:
        """Merge all tiers and return a typed EngineConfig."""
        merged = self.merge_config(overrides)

        sections = {}
        for section, params_type in _SECTION_TYPES.items():
            values = merged.get(section) or {}
            known = {f.name for f in fields(params_type)}
            unknown = sorted(set(values) - known)
            if unknown:
                raise ConfigurationError(
                    f"Unknown {section} settings: {', '.join(unknown)}",
                    invalid_fields=[f"{section}.{name}" for name in unknown],
                )
            sections[section] = values

        errors = ConfigValidator.validate_config(sections)
        if errors:
            raise ConfigurationError(
                f"Invalid engine settings: {format_validation_errors(errors)}",
                invalid_fields=[err.field for err in errors],
            )

        return EngineConfig(**{
            section: _SECTION_TYPES[section](**values) for section, values in sections.items()
        })

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
