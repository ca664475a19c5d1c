"""
Base repository class for database access.

Provides a common abstraction layer for the provider data clients,
encapsulating store client access and the conversion of SDK failures
into ProviderError.
"""

from contextlib import contextmanager
from typing import Iterator, TypeVar, Generic

from .exceptions import MuWiseError, ProviderError


C = TypeVar("C")


class BaseRepository(Generic[C]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Store client access via self._db (Supabase Client or Firestore Client)
    - _guard() to turn the SDK's exception types into ProviderError

    Subclasses implement domain-specific data access methods and handle
    native-record to canonical-model mapping internally.

    Example:
        class SupabaseDataClient(BaseRepository[Client]):
            provider = "supabase"
            sdk_errors = (PostgrestAPIError, httpx.HTTPError)

            async def get_agreement(self, agreement_id: str) -> Optional[Agreement]:
                with self._guard("get_agreement"):
                    result = self._db.table("agreements").select("*").eq("id", agreement_id).execute()
                if not result.data:
                    return None
                return _from_supabase_agreement(result.data[0])
    """

    provider: str = "unknown"
    sdk_errors: tuple[type[Exception], ...] = ()

    def __init__(self, db: C) -> None:
        """
        Initialize the repository with a store client.

        Args:
            db: Client instance for database operations.
        """
        self._db = db

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Re-raise SDK exceptions from the wrapped block as ProviderError."""
        try:
            yield
        except MuWiseError:
            raise
        except self.sdk_errors as exc:
            raise self._provider_error(action, exc) from exc

    def _provider_error(self, action: str, exc: Exception) -> ProviderError:
        """Wrap an SDK exception raised while performing ``action``."""
        return ProviderError(
            f"{action} failed: {exc}",
            service=self.provider,
            details={"action": action},
        )
