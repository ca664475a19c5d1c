"""Capability contract shared by the Firebase and Supabase adapters.

Each adapter is a composition of three capability objects (auth, data,
storage) bundled into a DatabaseClient. The rest of the application only
depends on the protocols defined here.
"""

import asyncio
import inspect
import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from shared.models import (
    Agreement,
    AgreementCreate,
    AgreementFilters,
    AgreementUpdate,
    AuthResult,
    SignatureResult,
    Signer,
    SignerCreate,
    User,
    UserCreate,
    UserUpdate,
)

AuthStateCallback = Callable[[Optional[User]], Any]
Unsubscribe = Callable[[], None]


class ProviderName(str, Enum):
    """Backing service identifiers."""

    FIREBASE = "firebase"
    SUPABASE = "supabase"


@runtime_checkable
class IAuthClient(Protocol):
    """
    Authentication capability.

    One adapter serves every caller in the process, so it keeps no signed-in
    session of its own. Sign-in and sign-up hand the provider session back
    in AuthResult.session; the other calls take the caller's tokens.
    """

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password. Never raises; see AuthResult.error."""
        ...

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> AuthResult:
        """Create the auth identity and its paired profile record."""
        ...

    async def sign_out(self, access_token: Optional[str] = None) -> None:
        """End the session behind ``access_token``. Without a token this is a no-op."""
        ...

    async def get_current_user(self, access_token: Optional[str] = None) -> Optional[User]:
        """The user ``access_token`` belongs to, or None when it is missing or no longer valid."""
        ...

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Unsubscribe:
        """
        Register a callback for sign-in, sign-out and token refresh.

        Returns an idempotent unsubscribe function.
        """
        ...

    async def get_token(self, session: Optional[dict[str, Any]] = None) -> Optional[str]:
        """Access token held in a session from sign_in or sign_up. Never contacts the provider."""
        ...

    async def refresh_token(self, refresh_token: Optional[str] = None) -> Optional[str]:
        """Exchange ``refresh_token`` for a fresh access token. Always contacts the provider."""
        ...


@runtime_checkable
class IDataClient(Protocol):
    """User and agreement persistence, including the signer-mutation protocol."""

    async def create_user(self, user_data: UserCreate) -> User: ...

    async def get_user(self, user_id: str) -> Optional[User]: ...

    async def update_user(self, user_id: str, user_data: UserUpdate) -> User: ...

    async def delete_user(self, user_id: str) -> None: ...

    async def create_agreement(self, agreement_data: AgreementCreate) -> Agreement: ...

    async def get_agreement(self, agreement_id: str) -> Optional[Agreement]: ...

    async def get_agreements(
        self,
        user_id: str,
        filters: Optional[AgreementFilters] = None,
    ) -> list[Agreement]: ...

    async def update_agreement(
        self,
        agreement_id: str,
        agreement_data: AgreementUpdate,
    ) -> Agreement: ...

    async def delete_agreement(self, agreement_id: str) -> None: ...

    async def update_signer_signature(
        self,
        agreement_id: str,
        signer_id: str,
        signature_data: str,
    ) -> SignatureResult: ...

    async def add_signer(self, agreement_id: str, signer_data: SignerCreate) -> Signer: ...

    async def remove_signer(self, agreement_id: str, signer_id: str) -> None: ...


@runtime_checkable
class IBulkDataClient(Protocol):
    """Whole-collection access used by the migration tool."""

    async def list_users(self) -> list[User]: ...

    async def list_agreements(self) -> list[Agreement]: ...

    async def upsert_user(self, user: User) -> None: ...

    async def upsert_agreement(self, agreement: Agreement) -> None: ...

    async def count_users(self) -> int: ...

    async def count_agreements(self) -> int: ...


@runtime_checkable
class IStorageClient(Protocol):
    """Object storage capability."""

    async def upload_file(
        self,
        bucket: str,
        path: str,
        data: bytes,
        options: Optional[dict[str, Any]] = None,
    ) -> str:
        """Upload bytes and return the object's URL."""
        ...

    async def download_file(self, bucket: str, path: str) -> bytes: ...

    async def delete_file(self, bucket: str, path: str) -> None: ...

    def get_public_url(self, bucket: str, path: str) -> str:
        """Deterministic public URL for bucket + path."""
        ...

    async def get_signed_url(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        """
        Time-limited URL, best effort.

        Providers without expiring URLs return the permanent public URL.
        """
        ...


@dataclass(frozen=True)
class DatabaseClient:
    """One provider's capability set."""

    provider: ProviderName
    auth: IAuthClient
    data: IDataClient
    storage: IStorageClient


class AuthStateListeners:
    """
    Registry of auth-state callbacks.

    Callbacks are scheduled on the running event loop rather than called
    inline, so delivery order relative to other changes in the same tick is
    not guaranteed. A callback removed before delivery is skipped.
    """

    def __init__(self) -> None:
        self._callbacks: dict[int, AuthStateCallback] = {}
        self._ids = itertools.count()

    def subscribe(self, callback: AuthStateCallback) -> Unsubscribe:
        key = next(self._ids)
        self._callbacks[key] = callback

        def unsubscribe() -> None:
            self._callbacks.pop(key, None)

        return unsubscribe

    def __len__(self) -> int:
        return len(self._callbacks)

    def emit(self, user: Optional[User]) -> None:
        """Notify every current subscriber of a state transition."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for key in list(self._callbacks):
            if loop is None:
                # Emitted from an SDK thread with no loop: deliver inline
                self._deliver(key, user)
            else:
                loop.call_soon(self._deliver, key, user)

    def _deliver(self, key: int, user: Optional[User]) -> None:
        callback = self._callbacks.get(key)
        if callback is None:
            return
        result = callback(user)
        if inspect.isawaitable(result):
            try:
                asyncio.get_running_loop().create_task(result)
            except RuntimeError:
                asyncio.run(result)
