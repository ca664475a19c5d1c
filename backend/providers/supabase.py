"""Supabase adapter: GoTrue auth, PostgREST tables and Supabase Storage.

Records live in flat ``users`` and ``agreements`` tables with snake_case
columns and ISO-8601 timestamp strings. Signers are a jsonb array column.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

import httpx
from supabase import (
    AuthError as SupabaseAuthError,
    Client,
    PostgrestAPIError,
    StorageException,
)

from shared.database import create_supabase_anon_client, get_supabase_client
from shared.exceptions import AuthError, MuWiseError, ProviderError
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
from shared.repository import BaseRepository

from .base import AuthStateCallback, AuthStateListeners, DatabaseClient, ProviderName, Unsubscribe
from .exceptions import AgreementNotFoundError, UserNotFoundError
from .mapping import (
    agreement_update_fields,
    new_agreement_fields,
    new_user_fields,
    parse_timestamp,
    record_fields,
    resolve_timestamps,
    set_fields,
    signer_list_fields,
    signers_from_list,
    to_iso,
    to_native_values,
)
from .signers import append_signer, apply_signature, drop_signer

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
AGREEMENTS_TABLE = "agreements"
PAGE_SIZE = 1000


# -----------------------------------------------------------------------------
# Row mapping
# -----------------------------------------------------------------------------


def _from_supabase_user(row: dict[str, Any]) -> User:
    """Map a ``users`` row to the canonical User."""
    created_at, updated_at = resolve_timestamps(row.get("created_at"), row.get("updated_at"), utc_now())
    return User(
        id=str(row["id"]),
        email=row.get("email") or "",
        name=row.get("name") or "",
        profile_picture=row.get("profile_picture") or "",
        phone=row.get("phone") or "",
        company=row.get("company") or "",
        role=row.get("role") or "user",
        is_email_verified=bool(row.get("is_email_verified")),
        last_login=parse_timestamp(row.get("last_login")),
        preferences=row.get("preferences") or {},
        stripe_customer_id=row.get("stripe_customer_id") or "",
        stripe_price_id=row.get("stripe_price_id") or "",
        stripe_subscription_id=row.get("stripe_subscription_id") or "",
        stripe_subscription_status=row.get("stripe_subscription_status") or "",
        created_at=created_at,
        updated_at=updated_at,
    )


def _from_supabase_agreement(row: dict[str, Any]) -> Agreement:
    """Map an ``agreements`` row to the canonical Agreement."""
    now = utc_now()
    created_at, updated_at = resolve_timestamps(row.get("created_at"), row.get("updated_at"), now)
    return Agreement(
        id=str(row["id"]),
        title=row.get("title") or "",
        song_title=row.get("song_title") or "",
        description=row.get("description") or "",
        publication_date=parse_timestamp(row.get("publication_date")),
        last_modified=parse_timestamp(row.get("last_modified")) or updated_at,
        composers=row.get("composers") or [],
        status=row.get("status") or "draft",
        type=row.get("type") or "",
        created_by=row.get("created_by") or "",
        signers=signers_from_list(row.get("signers")),
        signer_emails=row.get("signer_emails") or [],
        document_url=row.get("document_url") or "",
        metadata=row.get("metadata") or {},
        expires_at=parse_timestamp(row.get("expires_at")),
        signed_at=parse_timestamp(row.get("signed_at")),
        completed_at=parse_timestamp(row.get("completed_at")),
        pdf_url=row.get("pdf_url") or "",
        created_at=created_at,
        updated_at=updated_at,
    )


def _search_clause(search: str) -> str:
    """PostgREST ``or`` clause matching title or description, case-insensitively."""
    term = "".join(ch for ch in search if ch not in ",()")
    return f"title.ilike.%{term}%,description.ilike.%{term}%"


# -----------------------------------------------------------------------------
# Data
# -----------------------------------------------------------------------------


class SupabaseDataClient(BaseRepository[Client]):
    """
    User and agreement persistence on Supabase tables.

    Uses the service-role client; authorization is the caller's concern.
    """

    provider = ProviderName.SUPABASE.value
    sdk_errors = (PostgrestAPIError, httpx.HTTPError)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def create_user(self, user_data: UserCreate) -> User:
        row = to_native_values(new_user_fields(user_data, utc_now()))
        with self._guard("create_user"):
            result = self._db.table(USERS_TABLE).insert(row).execute()
        return _from_supabase_user(result.data[0])

    async def get_user(self, user_id: str) -> Optional[User]:
        row = self.fetch_user_row(user_id)
        return _from_supabase_user(row) if row else None

    async def update_user(self, user_id: str, user_data: UserUpdate) -> User:
        fields = set_fields(user_data)
        fields["updated_at"] = utc_now()
        with self._guard("update_user"):
            result = (
                self._db.table(USERS_TABLE)
                .update(to_native_values(fields))
                .eq("id", user_id)
                .execute()
            )
        if not result.data:
            raise UserNotFoundError(user_id)
        return _from_supabase_user(result.data[0])

    async def delete_user(self, user_id: str) -> None:
        with self._guard("delete_user"):
            self._db.table(USERS_TABLE).delete().eq("id", user_id).execute()

    def fetch_user_row(self, user_id: str) -> Optional[dict[str, Any]]:
        """Raw profile row, or None. Synchronous for use inside auth callbacks."""
        with self._guard("get_user"):
            result = self._db.table(USERS_TABLE).select("*").eq("id", user_id).execute()
        return result.data[0] if result.data else None

    # -------------------------------------------------------------------------
    # Agreements
    # -------------------------------------------------------------------------

    async def create_agreement(self, agreement_data: AgreementCreate) -> Agreement:
        row = to_native_values(new_agreement_fields(agreement_data, utc_now()))
        with self._guard("create_agreement"):
            result = self._db.table(AGREEMENTS_TABLE).insert(row).execute()
        return _from_supabase_agreement(result.data[0])

    async def get_agreement(self, agreement_id: str) -> Optional[Agreement]:
        row = self._fetch_agreement_row(agreement_id)
        return _from_supabase_agreement(row) if row else None

    async def get_agreements(
        self,
        user_id: str,
        filters: Optional[AgreementFilters] = None,
    ) -> list[Agreement]:
        query = self._db.table(AGREEMENTS_TABLE).select("*").eq("created_by", user_id)

        if filters is not None:
            if filters.status:
                query = query.eq("status", filters.status)
            if filters.type:
                query = query.eq("type", filters.type)
            if filters.date_from:
                query = query.gte("created_at", to_iso(filters.date_from))
            if filters.date_to:
                query = query.lte("created_at", to_iso(filters.date_to))
            if filters.search:
                query = query.or_(_search_clause(filters.search))

        with self._guard("get_agreements"):
            result = query.order("created_at", desc=True).execute()
        return [_from_supabase_agreement(row) for row in result.data]

    async def update_agreement(
        self,
        agreement_id: str,
        agreement_data: AgreementUpdate,
    ) -> Agreement:
        fields = agreement_update_fields(agreement_data, utc_now())
        with self._guard("update_agreement"):
            result = (
                self._db.table(AGREEMENTS_TABLE)
                .update(to_native_values(fields))
                .eq("id", agreement_id)
                .execute()
            )
        if not result.data:
            raise AgreementNotFoundError(agreement_id)
        return _from_supabase_agreement(result.data[0])

    async def delete_agreement(self, agreement_id: str) -> None:
        with self._guard("delete_agreement"):
            self._db.table(AGREEMENTS_TABLE).delete().eq("id", agreement_id).execute()

    # -------------------------------------------------------------------------
    # Signers (read-modify-write of the jsonb array)
    # -------------------------------------------------------------------------

    async def update_signer_signature(
        self,
        agreement_id: str,
        signer_id: str,
        signature_data: str,
    ) -> SignatureResult:
        signers = self._load_signers(agreement_id)
        signed_at = utc_now()
        signers = apply_signature(agreement_id, signers, signer_id, signature_data, signed_at)
        self._save_signers(agreement_id, signers, signed_at)
        return SignatureResult(signed_at=signed_at)

    async def add_signer(self, agreement_id: str, signer_data: SignerCreate) -> Signer:
        signers, new_signer = append_signer(self._load_signers(agreement_id), signer_data)
        self._save_signers(agreement_id, signers, utc_now())
        return new_signer

    async def remove_signer(self, agreement_id: str, signer_id: str) -> None:
        signers = drop_signer(self._load_signers(agreement_id), signer_id)
        self._save_signers(agreement_id, signers, utc_now())

    def _fetch_agreement_row(self, agreement_id: str) -> Optional[dict[str, Any]]:
        with self._guard("get_agreement"):
            result = self._db.table(AGREEMENTS_TABLE).select("*").eq("id", agreement_id).execute()
        return result.data[0] if result.data else None

    def _load_signers(self, agreement_id: str) -> list[Signer]:
        row = self._fetch_agreement_row(agreement_id)
        if row is None:
            raise AgreementNotFoundError(agreement_id)
        return signers_from_list(row.get("signers"))

    def _save_signers(self, agreement_id: str, signers: list[Signer], now: datetime) -> None:
        with self._guard("update_signers"):
            self._db.table(AGREEMENTS_TABLE).update(
                to_native_values(signer_list_fields(signers, now))
            ).eq("id", agreement_id).execute()

    # -------------------------------------------------------------------------
    # Bulk access for migrations
    # -------------------------------------------------------------------------

    async def list_users(self) -> list[User]:
        return [_from_supabase_user(row) for row in self._select_all(USERS_TABLE)]

    async def list_agreements(self) -> list[Agreement]:
        return [_from_supabase_agreement(row) for row in self._select_all(AGREEMENTS_TABLE)]

    async def upsert_user(self, user: User) -> None:
        row = self._upsert_row(user)
        with self._guard("upsert_user"):
            self._db.table(USERS_TABLE).upsert(row).execute()

    async def upsert_agreement(self, agreement: Agreement) -> None:
        row = self._upsert_row(agreement)
        with self._guard("upsert_agreement"):
            self._db.table(AGREEMENTS_TABLE).upsert(row).execute()

    async def count_users(self) -> int:
        return self._count(USERS_TABLE)

    async def count_agreements(self) -> int:
        return self._count(AGREEMENTS_TABLE)

    def _upsert_row(self, record: User | Agreement) -> dict[str, Any]:
        fields = record_fields(record)
        fields["updated_at"] = utc_now()
        return {"id": record.id, **to_native_values(fields)}

    def _select_all(self, table: str) -> list[dict[str, Any]]:
        """Read a whole table page by page, past PostgREST's row cap."""
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            with self._guard(f"list_{table}"):
                result = (
                    self._db.table(table)
                    .select("*")
                    .order("id")
                    .range(start, start + PAGE_SIZE - 1)
                    .execute()
                )
            rows.extend(result.data)
            if len(result.data) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    def _count(self, table: str) -> int:
        with self._guard(f"count_{table}"):
            result = self._db.table(table).select("id", count="exact").execute()
        return result.count or 0


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------


class SupabaseAuthClient:
    """
    Email/password auth through Supabase GoTrue.

    The SDK client keeps the session of whoever signs in through it, so every
    flow that creates or refreshes a session runs on a new anon-key client
    and the session goes back to the caller. Auth state changes are
    forwarded to subscribers as canonical users.
    """

    def __init__(self, client_factory: Callable[[], Client], profiles: SupabaseDataClient):
        self._client_factory = client_factory
        self._profiles = profiles
        self._listeners = AuthStateListeners()

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            response = self._client_factory().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
            if response.user is None:
                return AuthResult(error=AuthError("Invalid email or password", code="INVALID_CREDENTIALS"))
            user = self._map_auth_user(response.user)
        except SupabaseAuthError as e:
            return AuthResult(error=AuthError(str(e), code="INVALID_CREDENTIALS"))
        except MuWiseError as e:
            return AuthResult(error=e)
        except httpx.HTTPError as e:
            return AuthResult(error=ProviderError(f"sign_in failed: {e}", service=ProviderName.SUPABASE.value))

        self._listeners.emit(user)
        return AuthResult(user=user, session=_session_dict(response.session))

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> AuthResult:
        metadata = metadata or {}
        try:
            response = self._client_factory().auth.sign_up(
                {"email": email, "password": password, "options": {"data": metadata}}
            )
            if response.user is None:
                return AuthResult(error=AuthError("Sign-up did not return a user", code="SIGN_UP_FAILED"))

            auth_user = response.user
            if await self._profiles.get_user(auth_user.id) is None:
                await self._profiles.create_user(
                    UserCreate(
                        id=auth_user.id,
                        email=auth_user.email or email,
                        name=metadata.get("name", ""),
                        is_email_verified=bool(auth_user.email_confirmed_at),
                        last_login=utc_now(),
                    )
                )
            user = self._map_auth_user(auth_user)
        except SupabaseAuthError as e:
            return AuthResult(error=AuthError(str(e), code="SIGN_UP_FAILED"))
        except MuWiseError as e:
            return AuthResult(error=e)
        except httpx.HTTPError as e:
            return AuthResult(error=ProviderError(f"sign_up failed: {e}", service=ProviderName.SUPABASE.value))

        # No session until the email is confirmed, when confirmation is on
        if response.session is not None:
            self._listeners.emit(user)
        return AuthResult(user=user, session=_session_dict(response.session))

    async def sign_out(self, access_token: Optional[str] = None) -> None:
        if not access_token:
            return
        try:
            # Local scope revokes this session only, not the user's other devices
            self._client_factory().auth.admin.sign_out(access_token, "local")
        except (SupabaseAuthError, httpx.HTTPError) as e:
            raise ProviderError(f"sign_out failed: {e}", service=ProviderName.SUPABASE.value) from e
        self._listeners.emit(None)

    async def get_current_user(self, access_token: Optional[str] = None) -> Optional[User]:
        if not access_token:
            return None
        try:
            response = self._client_factory().auth.get_user(access_token)
        except SupabaseAuthError as e:
            logger.debug("Supabase token no longer valid: %s", e)
            return None
        if response is None or response.user is None:
            return None
        return self._map_auth_user(response.user)

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Unsubscribe:
        return self._listeners.subscribe(callback)

    async def get_token(self, session: Optional[dict[str, Any]] = None) -> Optional[str]:
        return (session or {}).get("access_token")

    async def refresh_token(self, refresh_token: Optional[str] = None) -> Optional[str]:
        if not refresh_token:
            return None
        try:
            response = self._client_factory().auth.refresh_session(refresh_token)
        except SupabaseAuthError as e:
            raise AuthError(f"Session refresh failed: {e}", code="TOKEN_EXPIRED") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"refresh_token failed: {e}", service=ProviderName.SUPABASE.value) from e

        if response.session is None:
            return None
        if response.user is not None:
            self._listeners.emit(self._map_auth_user(response.user))
        return response.session.access_token

    def _map_auth_user(self, auth_user: Any) -> User:
        """Merge the GoTrue identity with its profile row."""
        row = self._profiles.fetch_user_row(auth_user.id) or {"id": auth_user.id}
        metadata = auth_user.user_metadata or {}
        profile = _from_supabase_user(row)
        return profile.model_copy(
            update={
                "email": auth_user.email or profile.email,
                "name": profile.name or metadata.get("name", ""),
                "profile_picture": profile.profile_picture or metadata.get("avatar_url", ""),
                "is_email_verified": bool(auth_user.email_confirmed_at),
            }
        )


def _session_dict(session: Any) -> Optional[dict[str, Any]]:
    if session is None:
        return None
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": session.expires_at,
    }


# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------


class SupabaseStorageClient:
    """Object storage in Supabase Storage buckets."""

    def __init__(self, client: Client):
        self._client = client

    async def upload_file(
        self,
        bucket: str,
        path: str,
        data: bytes,
        options: Optional[dict[str, Any]] = None,
    ) -> str:
        options = options or {}
        file_options = {
            "content-type": options.get("content_type", "application/octet-stream"),
            "upsert": "true" if options.get("upsert") else "false",
        }
        try:
            self._client.storage.from_(bucket).upload(path, data, file_options)
        except (StorageException, httpx.HTTPError) as e:
            raise ProviderError(f"upload_file failed: {e}", service=ProviderName.SUPABASE.value) from e
        return self.get_public_url(bucket, path)

    async def download_file(self, bucket: str, path: str) -> bytes:
        try:
            return self._client.storage.from_(bucket).download(path)
        except (StorageException, httpx.HTTPError) as e:
            raise ProviderError(f"download_file failed: {e}", service=ProviderName.SUPABASE.value) from e

    async def delete_file(self, bucket: str, path: str) -> None:
        try:
            self._client.storage.from_(bucket).remove([path])
        except (StorageException, httpx.HTTPError) as e:
            raise ProviderError(f"delete_file failed: {e}", service=ProviderName.SUPABASE.value) from e

    def get_public_url(self, bucket: str, path: str) -> str:
        return self._client.storage.from_(bucket).get_public_url(path)

    async def get_signed_url(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        try:
            result = self._client.storage.from_(bucket).create_signed_url(path, expires_in)
        except (StorageException, httpx.HTTPError) as e:
            raise ProviderError(f"get_signed_url failed: {e}", service=ProviderName.SUPABASE.value) from e
        return result.get("signedUrl") or result["signedURL"]


def create_supabase_database_client() -> DatabaseClient:
    """Build the Supabase capability set from the configured clients."""
    service_client = get_supabase_client()
    data = SupabaseDataClient(service_client)
    return DatabaseClient(
        provider=ProviderName.SUPABASE,
        auth=SupabaseAuthClient(create_supabase_anon_client, data),
        data=data,
        storage=SupabaseStorageClient(service_client),
    )
