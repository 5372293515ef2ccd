"""
Persistence layer for bot configuration and purchase attempt history.
"""
from .base import PersistenceGateway
from .memory import InMemoryPersistenceGateway
from .sqlite_gateway import SqlitePersistenceGateway

__all__ = ["PersistenceGateway", "InMemoryPersistenceGateway", "SqlitePersistenceGateway"]
