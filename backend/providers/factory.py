"""
Provider selection facade.

Picks the Firebase or Supabase adapter from the USE_SUPABASE flag and
caches one DatabaseClient per process. The flag is re-read on every get(),
so a configuration change swaps the adapter without a restart.
"""

import logging
import threading
from typing import Callable, Optional

from shared.config import read_use_supabase

from .base import DatabaseClient, ProviderName

logger = logging.getLogger(__name__)

AdapterBuilder = Callable[[], DatabaseClient]


def _build_firebase() -> DatabaseClient:
    from .firebase import create_firebase_database_client
    return create_firebase_database_client()


def _build_supabase() -> DatabaseClient:
    from .supabase import create_supabase_database_client
    return create_supabase_database_client()


class DatabaseClientFactory:
    """
    Process-scoped cache of the active provider adapter.

    Lifecycle:
    - get() constructs on first use
    - get() replaces the cached adapter when the flag now resolves to a
      different provider
    - reset() drops the cached adapter unconditionally

    FastAPI runs sync dependencies on worker threads, so check-then-construct
    is serialized with a lock; at most one adapter is built per switch.
    """

    def __init__(
        self,
        flag_reader: Callable[[], bool] = read_use_supabase,
        builders: Optional[dict[ProviderName, AdapterBuilder]] = None,
    ):
        self._flag_reader = flag_reader
        self._builders = builders or {
            ProviderName.FIREBASE: _build_firebase,
            ProviderName.SUPABASE: _build_supabase,
        }
        self._client: Optional[DatabaseClient] = None
        self._lock = threading.Lock()

    def get(self) -> DatabaseClient:
        """Return the adapter for the currently configured provider."""
        provider = self._configured_provider()
        with self._lock:
            if self._client is None or self._client.provider != provider:
                if self._client is not None:
                    logger.info(
                        "Provider changed from %s to %s, replacing adapter",
                        self._client.provider.value,
                        provider.value,
                    )
                self._client = self._builders[provider]()
                logger.info("Initialized %s database client", provider.value)
            return self._client

    def reset(self) -> None:
        """Drop the cached adapter; the next get() builds a fresh one."""
        with self._lock:
            self._client = None

    def current_provider(self) -> ProviderName:
        """Cached adapter's provider, or the configured one. Never builds an adapter."""
        client = self._client
        if client is not None:
            return client.provider
        return self._configured_provider()

    def is_using_supabase(self) -> bool:
        return self.current_provider() == ProviderName.SUPABASE

    def is_using_firebase(self) -> bool:
        return self.current_provider() == ProviderName.FIREBASE

    def _configured_provider(self) -> ProviderName:
        return ProviderName.SUPABASE if self._flag_reader() else ProviderName.FIREBASE


# Module-level factory singleton
_factory: Optional[DatabaseClientFactory] = None


def get_database_factory() -> DatabaseClientFactory:
    """Get the process-wide factory instance."""
    global _factory
    if _factory is None:
        _factory = DatabaseClientFactory()
    return _factory


def reset_database_factory() -> None:
    """
    Discard the process-wide factory and its cached adapter.

    Primarily used for testing.
    """
    global _factory
    _factory = None
