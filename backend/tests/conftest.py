"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
provider tokens, session cookies, and in-memory stand-ins for the provider
capabilities so services can be exercised without a backing service.
"""

import itertools
from datetime import datetime, timezone, timedelta
from typing import Any, Optional

import jwt  # PyJWT
import pytest

from modules.auth.service import SessionService, reset_session_service
from providers.base import AuthStateListeners, DatabaseClient, ProviderName
from providers.exceptions import AgreementNotFoundError, UserNotFoundError
from providers.factory import DatabaseClientFactory
from providers.mapping import (
    agreement_update_fields,
    matches_filters,
    new_agreement_fields,
    new_user_fields,
    newest_first,
    set_fields,
    signer_list_fields,
)
from providers.signers import append_signer, apply_signature, drop_signer
from shared.config import get_settings
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
    utc_now,
)


# Provider tokens are read without signature verification; any key works
TEST_TOKEN_SECRET = "test-secret-key-for-testing-only"


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    firebase: bool = False,
) -> str:
    """
    Create a provider access token like the ones Supabase or Firebase issue.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        firebase: Also carry the id as ``user_id``, as Firebase ID tokens do

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "exp": int((now + timedelta(hours=1)).timestamp()),
        "iat": int(now.timestamp()),
    }
    if firebase:
        payload["user_id"] = user_id
    return jwt.encode(payload, TEST_TOKEN_SECRET, algorithm="HS256")


def create_session_cookie(user_id: str = "test-user-123", email: str = "test@example.com") -> dict[str, str]:
    """Cookie jar entry carrying a valid session for ``user_id``."""
    token = SessionService().create_session(create_test_token(user_id, email))
    return {get_settings().session_cookie_name: token}


# -----------------------------------------------------------------------------
# In-memory provider capabilities
# -----------------------------------------------------------------------------


class InMemoryDataClient:
    """Dict-backed data client following the same write rules as the adapters."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.agreements: dict[str, Agreement] = {}
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    async def create_user(self, user_data: UserCreate) -> User:
        fields = new_user_fields(user_data, utc_now())
        user_id = fields.pop("id", None) or self._next_id("user")
        user = User(id=user_id, **fields)
        self.users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def update_user(self, user_id: str, user_data: UserUpdate) -> User:
        if user_id not in self.users:
            raise UserNotFoundError(user_id)
        fields = {**set_fields(user_data), "updated_at": utc_now()}
        self.users[user_id] = self.users[user_id].model_copy(update=fields)
        return self.users[user_id]

    async def delete_user(self, user_id: str) -> None:
        self.users.pop(user_id, None)

    async def create_agreement(self, agreement_data: AgreementCreate) -> Agreement:
        agreement = Agreement(id=self._next_id("agreement"), **new_agreement_fields(agreement_data, utc_now()))
        self.agreements[agreement.id] = agreement
        return agreement

    async def get_agreement(self, agreement_id: str) -> Optional[Agreement]:
        return self.agreements.get(agreement_id)

    async def get_agreements(
        self,
        user_id: str,
        filters: Optional[AgreementFilters] = None,
    ) -> list[Agreement]:
        owned = [a for a in self.agreements.values() if a.created_by == user_id]
        return newest_first(a for a in owned if matches_filters(a, filters))

    async def update_agreement(self, agreement_id: str, agreement_data: AgreementUpdate) -> Agreement:
        if agreement_id not in self.agreements:
            raise AgreementNotFoundError(agreement_id)
        fields = agreement_update_fields(agreement_data, utc_now())
        self.agreements[agreement_id] = self.agreements[agreement_id].model_copy(update=fields)
        return self.agreements[agreement_id]

    async def delete_agreement(self, agreement_id: str) -> None:
        self.agreements.pop(agreement_id, None)

    async def update_signer_signature(
        self,
        agreement_id: str,
        signer_id: str,
        signature_data: str,
    ) -> SignatureResult:
        agreement = self._require(agreement_id)
        signed_at = utc_now()
        signers = apply_signature(agreement_id, agreement.signers, signer_id, signature_data, signed_at)
        self._store_signers(agreement, signers)
        return SignatureResult(signed_at=signed_at)

    async def add_signer(self, agreement_id: str, signer_data: SignerCreate) -> Signer:
        agreement = self._require(agreement_id)
        signers, signer = append_signer(agreement.signers, signer_data)
        self._store_signers(agreement, signers)
        return signer

    async def remove_signer(self, agreement_id: str, signer_id: str) -> None:
        agreement = self._require(agreement_id)
        self._store_signers(agreement, drop_signer(agreement.signers, signer_id))

    # Bulk capability

    async def list_users(self) -> list[User]:
        return list(self.users.values())

    async def list_agreements(self) -> list[Agreement]:
        return list(self.agreements.values())

    async def upsert_user(self, user: User) -> None:
        self.users[user.id] = user

    async def upsert_agreement(self, agreement: Agreement) -> None:
        self.agreements[agreement.id] = agreement

    async def count_users(self) -> int:
        return len(self.users)

    async def count_agreements(self) -> int:
        return len(self.agreements)

    def _require(self, agreement_id: str) -> Agreement:
        agreement = self.agreements.get(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(agreement_id)
        return agreement

    def _store_signers(self, agreement: Agreement, signers: list[Signer]) -> None:
        fields = signer_list_fields(signers, utc_now())
        self.agreements[agreement.id] = agreement.model_copy(update=fields)


class InMemoryStorageClient:
    """Object store keyed by (bucket, path)."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.options: dict[tuple[str, str], dict[str, Any]] = {}

    async def upload_file(self, bucket: str, path: str, data: bytes, options=None) -> str:
        self.objects[(bucket, path)] = data
        self.options[(bucket, path)] = dict(options or {})
        return self.get_public_url(bucket, path)

    async def download_file(self, bucket: str, path: str) -> bytes:
        return self.objects[(bucket, path)]

    async def delete_file(self, bucket: str, path: str) -> None:
        self.objects.pop((bucket, path), None)

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"https://files.example.com/{bucket}/{path}"

    async def get_signed_url(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        return f"{self.get_public_url(bucket, path)}?expires={expires_in}"


class InMemoryAuthClient:
    """Auth capability that accepts one known password per email."""

    def __init__(self, data: InMemoryDataClient) -> None:
        self._data = data
        self._passwords: dict[str, tuple[str, str]] = {}
        self._listeners = AuthStateListeners()
        self.signed_out: list[str] = []

    async def sign_in(self, email: str, password: str) -> AuthResult:
        from shared.exceptions import AuthError

        known = self._passwords.get(email)
        if known is None or known[1] != password:
            return AuthResult(error=AuthError("Invalid login credentials", code="INVALID_CREDENTIALS"))
        user = self._data.users[known[0]]
        self._listeners.emit(user)
        return AuthResult(user=user, session={"access_token": create_test_token(known[0], email)})

    async def sign_up(self, email: str, password: str, metadata=None) -> AuthResult:
        user = await self._data.create_user(UserCreate(email=email, name=(metadata or {}).get("name")))
        self._passwords[email] = (user.id, password)
        return AuthResult(user=user, session={"access_token": create_test_token(user.id, email)})

    async def sign_out(self, access_token: Optional[str] = None) -> None:
        if access_token:
            self.signed_out.append(access_token)
            self._listeners.emit(None)

    async def get_current_user(self, access_token: Optional[str] = None) -> Optional[User]:
        if not access_token:
            return None
        return self._data.users.get(jwt.decode(access_token, options={"verify_signature": False})["sub"])

    def on_auth_state_changed(self, callback):
        return self._listeners.subscribe(callback)

    async def get_token(self, session=None) -> Optional[str]:
        return (session or {}).get("access_token")

    async def refresh_token(self, refresh_token: Optional[str] = None) -> Optional[str]:
        user = await self.get_current_user(refresh_token)
        return create_test_token(user.id, user.email) if user else None


def in_memory_factory(provider: ProviderName = ProviderName.SUPABASE) -> DatabaseClientFactory:
    """A factory whose every adapter shares one in-memory store."""
    data = InMemoryDataClient()
    storage = InMemoryStorageClient()
    auth = InMemoryAuthClient(data)

    def build() -> DatabaseClient:
        return DatabaseClient(provider=provider, auth=auth, data=data, storage=storage)

    return DatabaseClientFactory(
        flag_reader=lambda: provider == ProviderName.SUPABASE,
        builders={ProviderName.FIREBASE: build, ProviderName.SUPABASE: build},
    )


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_session_singleton():
    """Reset the session service singleton before and after each test."""
    reset_session_service()
    yield
    reset_session_service()


@pytest.fixture
def factory() -> DatabaseClientFactory:
    return in_memory_factory()


@pytest.fixture
def data_client(factory) -> InMemoryDataClient:
    return factory.get().data


@pytest.fixture
def storage_client(factory) -> InMemoryStorageClient:
    return factory.get().storage


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def test_user_email() -> str:
    """Provide a consistent test user email."""
    return "test@example.com"


@pytest.fixture
def auth_token(test_user_id: str, test_user_email: str) -> str:
    """Create a provider token for the test user."""
    return create_test_token(user_id=test_user_id, email=test_user_email)


@pytest.fixture
def auth_headers(test_user_id: str, test_user_email: str) -> dict[str, str]:
    """Authorization header carrying a session token, for non-browser clients."""
    session = SessionService().create_session(create_test_token(test_user_id, test_user_email))
    return {"Authorization": f"Bearer {session}"}


# -----------------------------------------------------------------------------
# API fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def api_container(factory):
    """Service container bound to the in-memory provider."""
    from api.dependencies import ServiceContainer

    return ServiceContainer(factory=factory)


@pytest.fixture
def app(api_container):
    """A fresh app whose dependencies resolve to the in-memory provider."""
    from api.app import create_app
    from api.dependencies import (
        get_agreement_service,
        get_factory,
        get_session_service,
        get_storage_service,
        get_user_service,
    )

    application = create_app()
    application.dependency_overrides[get_factory] = lambda: api_container.factory
    application.dependency_overrides[get_session_service] = lambda: api_container.sessions
    application.dependency_overrides[get_storage_service] = lambda: api_container.storage
    application.dependency_overrides[get_user_service] = lambda: api_container.users
    application.dependency_overrides[get_agreement_service] = lambda: api_container.agreements
    return application


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)
