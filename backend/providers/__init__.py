"""Backing-service adapters behind one capability contract."""

from .base import (
    AuthStateListeners,
    DatabaseClient,
    IAuthClient,
    IBulkDataClient,
    IDataClient,
    IStorageClient,
    ProviderName,
)
from .factory import DatabaseClientFactory, get_database_factory, reset_database_factory

__all__ = [
    "AuthStateListeners",
    "DatabaseClient",
    "DatabaseClientFactory",
    "IAuthClient",
    "IBulkDataClient",
    "IDataClient",
    "IStorageClient",
    "ProviderName",
    "get_database_factory",
    "reset_database_factory",
]
