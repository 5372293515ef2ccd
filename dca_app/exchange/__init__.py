"""
Exchange access: the capability contract used by the engine, credential
resolution, and a ccxt-backed implementation.
"""
from .base import ExchangeClient, OrderResult, OrderSide
from .credentials import (
    CredentialResolver,
    Credentials,
    EnvCredentialResolver,
    StaticCredentialResolver,
)

__all__ = [
    "ExchangeClient",
    "OrderResult",
    "OrderSide",
    "CredentialResolver",
    "Credentials",
    "EnvCredentialResolver",
    "StaticCredentialResolver",
]
