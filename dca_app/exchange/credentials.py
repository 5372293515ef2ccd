"""Credential handles and their resolution into API keys."""

import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..errors import ConfigurationError


@dataclass(frozen=True)
class Credentials:
    """Exchange API key pair. Secrets never appear in repr or logs."""
    api_key: str = field(repr=False)
    api_secret: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_secret:
            raise ConfigurationError(
                "API keys not configured",
                missing_fields=[name for name in ("api_key", "api_secret") if not getattr(self, name)],
            )


class CredentialResolver(ABC):
    """Turns the opaque credentials_ref stored with the settings into Credentials."""

    @abstractmethod
    def resolve(self, credentials_ref: Optional[str]) -> Credentials:
        """Raise ConfigurationError when the reference cannot be resolved."""


class StaticCredentialResolver(CredentialResolver):
    """Resolver over an in-memory mapping of reference to credentials."""

    def __init__(self, credentials: Mapping[str, Credentials]):
        self._credentials = dict(credentials)

    def resolve(self, credentials_ref: Optional[str]) -> Credentials:
        if not credentials_ref:
            raise ConfigurationError("API keys not configured", missing_fields=["credentials_ref"])
        try:
            return self._credentials[credentials_ref]
        except KeyError:
            raise ConfigurationError(
                f"Unknown credentials reference '{credentials_ref}'",
                invalid_fields=["credentials_ref"],
            ) from None


class EnvCredentialResolver(CredentialResolver):
    """
    Resolver reading environment variables.

    A reference 'main' with prefix 'DCA' reads DCA_MAIN_API_KEY and
    DCA_MAIN_API_SECRET.
    """

    def __init__(self, prefix: str = "DCA", environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def variable_names(self, credentials_ref: str) -> tuple[str, str]:
        token = re.sub(r"[^A-Za-z0-9]+", "_", credentials_ref).strip("_").upper()
        base = f"{self.prefix}_{token}" if self.prefix else token
        return f"{base}_API_KEY", f"{base}_API_SECRET"

    def resolve(self, credentials_ref: Optional[str]) -> Credentials:
        if not credentials_ref:
            raise ConfigurationError("API keys not configured", missing_fields=["credentials_ref"])

        key_var, secret_var = self.variable_names(credentials_ref)
        missing = [name for name in (key_var, secret_var) if not self._environ.get(name)]
        if missing:
            raise ConfigurationError(
                f"Credentials for '{credentials_ref}' not found in environment",
                missing_fields=missing,
            )
        return Credentials(api_key=self._environ[key_var], api_secret=self._environ[secret_var])
