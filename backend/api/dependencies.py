"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together the provider
facade and the module services. Services receive the facade explicitly
instead of reaching for it at import time.
"""

from typing import TYPE_CHECKING, Callable

from providers.factory import DatabaseClientFactory, get_database_factory

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.agreements.interfaces import IAgreementService
    from modules.auth.interfaces import ISessionService
    from modules.migration.tools import MigrationTools
    from modules.users.interfaces import IStorageService, IUserService


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached as singletons
    within the container. Use reset() to clear them for testing.
    """

    def __init__(self, factory: DatabaseClientFactory | None = None) -> None:
        self._factory = factory
        self._session_service: "ISessionService | None" = None
        self._storage_service: "IStorageService | None" = None
        self._user_service: "IUserService | None" = None
        self._agreement_service: "IAgreementService | None" = None
        self._migration_tools: "MigrationTools | None" = None

    @property
    def factory(self) -> DatabaseClientFactory:
        """Get the provider facade."""
        if self._factory is None:
            self._factory = get_database_factory()
        return self._factory

    @property
    def sessions(self) -> "ISessionService":
        """Get the session service instance."""
        if self._session_service is None:
            from modules.auth.service import SessionService
            self._session_service = SessionService()
        return self._session_service

    @property
    def storage(self) -> "IStorageService":
        """Get the storage service instance."""
        if self._storage_service is None:
            from modules.users.storage import StorageService
            self._storage_service = StorageService(self.factory)
        return self._storage_service

    @property
    def users(self) -> "IUserService":
        """Get the user service instance."""
        if self._user_service is None:
            from modules.users.service import UserService
            self._user_service = UserService(self.factory, self.storage)
        return self._user_service

    @property
    def agreements(self) -> "IAgreementService":
        """Get the agreement service instance."""
        if self._agreement_service is None:
            from modules.agreements.service import AgreementService
            self._agreement_service = AgreementService(self.factory, self.storage)
        return self._agreement_service

    @property
    def migration(self) -> "MigrationTools":
        """Get the migration tools, bound to both configured stores."""
        if self._migration_tools is None:
            from modules.migration.tools import create_migration_tools
            self._migration_tools = create_migration_tools()
        return self._migration_tools

    def reset(self) -> None:
        """
        Reset all cached services.

        The factory is kept; call its reset() to drop the cached adapter.
        """
        self._session_service = None
        self._storage_service = None
        self._user_service = None
        self._agreement_service = None
        self._migration_tools = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container.
    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_factory() -> DatabaseClientFactory:
    """FastAPI dependency for the provider facade."""
    return get_container().factory


def get_session_service() -> "ISessionService":
    """FastAPI dependency for the session service."""
    return get_container().sessions


def get_storage_service() -> "IStorageService":
    """FastAPI dependency for the storage service."""
    return get_container().storage


def get_user_service() -> "IUserService":
    """FastAPI dependency for the user service."""
    return get_container().users


def get_agreement_service() -> "IAgreementService":
    """FastAPI dependency for the agreement service."""
    return get_container().agreements


def get_migration_tools() -> "MigrationTools":
    """Get the migration tools, building them on first use."""
    return get_container().migration


def get_migration_tools_builder() -> Callable[[], "MigrationTools"]:
    """
    FastAPI dependency that defers building the migration tools.

    Building them connects to both stores, which fails when either is not
    configured; the route builds them where it can report that failure.
    """
    return get_migration_tools
