"""Firebase adapter: Identity Toolkit auth, Cloud Firestore and Cloud Storage.

Auth goes through the Identity Toolkit REST API with the project's web API
key, so the adapter holds the signed-in session itself. Data and storage go
through the firebase_admin app. Firestore documents use camelCase field
names and ISO-8601 timestamp strings.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

import httpx
from firebase_admin.exceptions import FirebaseError
from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic.alias_generators import to_camel

from shared.config import get_settings
from shared.database import NOT_CONFIGURED, get_firebase_bucket, get_firestore_client
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
    matches_filters,
    new_agreement_fields,
    new_user_fields,
    newest_first,
    parse_timestamp,
    record_fields,
    resolve_timestamps,
    set_fields,
    signer_list_fields,
    signers_from_list,
    to_native_values,
)
from .signers import append_signer, apply_signature, drop_signer

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
AGREEMENTS_COLLECTION = "agreements"

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
STORAGE_DOWNLOAD_URL = "https://firebasestorage.googleapis.com/v0/b"
REQUEST_TIMEOUT = 30.0

# Identity Toolkit error codes that mean the caller's credentials are wrong
CREDENTIAL_ERRORS = {
    "EMAIL_NOT_FOUND",
    "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS",
    "INVALID_EMAIL",
    "USER_DISABLED",
    "EMAIL_EXISTS",
    "WEAK_PASSWORD",
    "INVALID_ID_TOKEN",
    "TOKEN_EXPIRED",
    "INVALID_REFRESH_TOKEN",
    "USER_NOT_FOUND",
}


# -----------------------------------------------------------------------------
# Document mapping
# -----------------------------------------------------------------------------


def _to_firestore(fields: dict[str, Any]) -> dict[str, Any]:
    """Canonical attribute dict to a camelCase Firestore document."""
    return {to_camel(name): value for name, value in to_native_values(fields).items()}


def _first(data: dict[str, Any], *keys: str) -> Any:
    """First present, non-empty value among current and legacy field names."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _from_firestore_user(doc_id: str, data: dict[str, Any]) -> User:
    created_at, updated_at = resolve_timestamps(data.get("createdAt"), data.get("updatedAt"), utc_now())
    return User(
        id=doc_id,
        email=data.get("email") or "",
        name=_first(data, "name", "displayName") or "",
        profile_picture=_first(data, "profilePicture", "photoURL") or "",
        phone=_first(data, "phone", "phoneNumber") or "",
        company=data.get("company") or "",
        role=data.get("role") or "user",
        is_email_verified=bool(_first(data, "isEmailVerified", "emailVerified")),
        last_login=parse_timestamp(_first(data, "lastLogin", "lastLoginAt")),
        preferences=data.get("preferences") or {},
        stripe_customer_id=data.get("stripeCustomerId") or "",
        stripe_price_id=data.get("stripePriceId") or "",
        stripe_subscription_id=data.get("stripeSubscriptionId") or "",
        stripe_subscription_status=data.get("stripeSubscriptionStatus") or "",
        created_at=created_at,
        updated_at=updated_at,
    )


def _from_firestore_agreement(doc_id: str, data: dict[str, Any]) -> Agreement:
    created_at, updated_at = resolve_timestamps(data.get("createdAt"), data.get("updatedAt"), utc_now())
    return Agreement(
        id=doc_id,
        title=data.get("title") or "",
        song_title=data.get("songTitle") or "",
        description=data.get("description") or "",
        publication_date=parse_timestamp(data.get("publicationDate")),
        last_modified=parse_timestamp(data.get("lastModified")) or updated_at,
        composers=data.get("composers") or [],
        status=data.get("status") or "draft",
        type=data.get("type") or "",
        created_by=_first(data, "createdBy", "userId") or "",
        signers=signers_from_list(data.get("signers")),
        signer_emails=data.get("signerEmails") or [],
        document_url=data.get("documentUrl") or "",
        metadata=data.get("metadata") or {},
        expires_at=parse_timestamp(data.get("expiresAt")),
        signed_at=parse_timestamp(data.get("signedAt")),
        completed_at=parse_timestamp(data.get("completedAt")),
        pdf_url=data.get("pdfUrl") or "",
        created_at=created_at,
        updated_at=updated_at,
    )


# -----------------------------------------------------------------------------
# Data
# -----------------------------------------------------------------------------


class FirestoreDataClient(BaseRepository[Any]):
    """User and agreement persistence in Cloud Firestore collections."""

    provider = ProviderName.FIREBASE.value
    sdk_errors = (GoogleAPIError, FirebaseError)

    def _users(self):
        return self._db.collection(USERS_COLLECTION)

    def _agreements(self):
        return self._db.collection(AGREEMENTS_COLLECTION)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def create_user(self, user_data: UserCreate) -> User:
        fields = new_user_fields(user_data, utc_now())
        user_id = fields.pop("id", None)
        with self._guard("create_user"):
            doc_ref = self._users().document(user_id) if user_id else self._users().document()
            doc_ref.set(_to_firestore(fields))
        return User(id=doc_ref.id, **fields)

    async def get_user(self, user_id: str) -> Optional[User]:
        with self._guard("get_user"):
            snapshot = self._users().document(user_id).get()
        if not snapshot.exists:
            return None
        return _from_firestore_user(snapshot.id, snapshot.to_dict() or {})

    async def update_user(self, user_id: str, user_data: UserUpdate) -> User:
        fields = set_fields(user_data)
        fields["updated_at"] = utc_now()
        with self._guard("update_user"):
            try:
                self._users().document(user_id).update(_to_firestore(fields))
            except NotFound as e:
                raise UserNotFoundError(user_id) from e

        user = await self.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def delete_user(self, user_id: str) -> None:
        with self._guard("delete_user"):
            self._users().document(user_id).delete()

    # -------------------------------------------------------------------------
    # Agreements
    # -------------------------------------------------------------------------

    async def create_agreement(self, agreement_data: AgreementCreate) -> Agreement:
        fields = new_agreement_fields(agreement_data, utc_now())
        with self._guard("create_agreement"):
            doc_ref = self._agreements().document()
            doc_ref.set(_to_firestore(fields))
        return Agreement(id=doc_ref.id, **fields)

    async def get_agreement(self, agreement_id: str) -> Optional[Agreement]:
        with self._guard("get_agreement"):
            snapshot = self._agreements().document(agreement_id).get()
        if not snapshot.exists:
            return None
        return _from_firestore_agreement(snapshot.id, snapshot.to_dict() or {})

    async def get_agreements(
        self,
        user_id: str,
        filters: Optional[AgreementFilters] = None,
    ) -> list[Agreement]:
        # Equality filters run in Firestore; range and search need composite
        # indexes there, so they run on the result set instead.
        query = self._agreements().where(filter=FieldFilter("createdBy", "==", user_id))
        if filters is not None:
            if filters.status:
                query = query.where(filter=FieldFilter("status", "==", filters.status))
            if filters.type:
                query = query.where(filter=FieldFilter("type", "==", filters.type))

        with self._guard("get_agreements"):
            agreements = [
                _from_firestore_agreement(snapshot.id, snapshot.to_dict() or {})
                for snapshot in query.stream()
            ]
        return newest_first(a for a in agreements if matches_filters(a, filters))

    async def update_agreement(
        self,
        agreement_id: str,
        agreement_data: AgreementUpdate,
    ) -> Agreement:
        fields = agreement_update_fields(agreement_data, utc_now())
        with self._guard("update_agreement"):
            try:
                self._agreements().document(agreement_id).update(_to_firestore(fields))
            except NotFound as e:
                raise AgreementNotFoundError(agreement_id) from e

        agreement = await self.get_agreement(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(agreement_id)
        return agreement

    async def delete_agreement(self, agreement_id: str) -> None:
        with self._guard("delete_agreement"):
            self._agreements().document(agreement_id).delete()

    # -------------------------------------------------------------------------
    # Signers (read-modify-write of the embedded array)
    # -------------------------------------------------------------------------

    async def update_signer_signature(
        self,
        agreement_id: str,
        signer_id: str,
        signature_data: str,
    ) -> SignatureResult:
        signers = await self._load_signers(agreement_id)
        signed_at = utc_now()
        signers = apply_signature(agreement_id, signers, signer_id, signature_data, signed_at)
        self._save_signers(agreement_id, signers, signed_at)
        return SignatureResult(signed_at=signed_at)

    async def add_signer(self, agreement_id: str, signer_data: SignerCreate) -> Signer:
        signers, new_signer = append_signer(await self._load_signers(agreement_id), signer_data)
        self._save_signers(agreement_id, signers, utc_now())
        return new_signer

    async def remove_signer(self, agreement_id: str, signer_id: str) -> None:
        signers = drop_signer(await self._load_signers(agreement_id), signer_id)
        self._save_signers(agreement_id, signers, utc_now())

    async def _load_signers(self, agreement_id: str) -> list[Signer]:
        agreement = await self.get_agreement(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(agreement_id)
        return agreement.signers

    def _save_signers(self, agreement_id: str, signers: list[Signer], now: datetime) -> None:
        with self._guard("update_signers"):
            self._agreements().document(agreement_id).update(
                _to_firestore(signer_list_fields(signers, now))
            )

    # -------------------------------------------------------------------------
    # Bulk access for migrations
    # -------------------------------------------------------------------------

    async def list_users(self) -> list[User]:
        with self._guard("list_users"):
            return [
                _from_firestore_user(snapshot.id, snapshot.to_dict() or {})
                for snapshot in self._users().stream()
            ]

    async def list_agreements(self) -> list[Agreement]:
        with self._guard("list_agreements"):
            return [
                _from_firestore_agreement(snapshot.id, snapshot.to_dict() or {})
                for snapshot in self._agreements().stream()
            ]

    async def upsert_user(self, user: User) -> None:
        with self._guard("upsert_user"):
            self._users().document(user.id).set(self._upsert_document(user))

    async def upsert_agreement(self, agreement: Agreement) -> None:
        with self._guard("upsert_agreement"):
            self._agreements().document(agreement.id).set(self._upsert_document(agreement))

    async def count_users(self) -> int:
        return self._count(self._users(), "count_users")

    async def count_agreements(self) -> int:
        return self._count(self._agreements(), "count_agreements")

    def _upsert_document(self, record: User | Agreement) -> dict[str, Any]:
        fields = record_fields(record)
        fields["updated_at"] = utc_now()
        return _to_firestore(fields)

    def _count(self, collection, action: str) -> int:
        with self._guard(action):
            results = collection.count().get()
        return int(results[0][0].value)


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------


class FirebaseAuthClient:
    """
    Email/password auth through the Identity Toolkit REST API.

    Holds only the project's API key; the ID and refresh tokens go back to
    the caller. Sign-in and sign-up stamp the Firestore profile; auth
    identities without a profile get one on first sign-in.
    """

    def __init__(self, api_key: str, profiles: FirestoreDataClient):
        self._api_key = api_key
        self._profiles = profiles
        self._listeners = AuthStateListeners()

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            payload = await self._post(
                f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithPassword",
                {"email": email, "password": password, "returnSecureToken": True},
            )
            user = await self._ensure_profile(payload, email)
        except MuWiseError as e:
            return AuthResult(error=e)

        self._listeners.emit(user)
        return AuthResult(user=user, session=self._session_from(payload))

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> AuthResult:
        metadata = metadata or {}
        try:
            payload = await self._post(
                f"{IDENTITY_TOOLKIT_URL}/accounts:signUp",
                {"email": email, "password": password, "returnSecureToken": True},
            )
            user = await self._profiles.create_user(
                UserCreate(
                    id=payload["localId"],
                    email=payload.get("email") or email,
                    name=metadata.get("name", ""),
                    is_email_verified=False,
                    last_login=utc_now(),
                )
            )
        except MuWiseError as e:
            return AuthResult(error=e)

        self._listeners.emit(user)
        return AuthResult(user=user, session=self._session_from(payload))

    async def sign_out(self, access_token: Optional[str] = None) -> None:
        # ID tokens cannot be revoked one by one; they lapse within the hour
        if not access_token:
            return
        self._listeners.emit(None)

    async def get_current_user(self, access_token: Optional[str] = None) -> Optional[User]:
        if not access_token:
            return None
        try:
            payload = await self._post(
                f"{IDENTITY_TOOLKIT_URL}/accounts:lookup",
                {"idToken": access_token},
            )
        except AuthError as e:
            logger.debug("Firebase ID token no longer valid: %s", e)
            return None

        accounts = payload.get("users") or []
        if not accounts:
            return None
        return await self._map_account(accounts[0])

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Unsubscribe:
        return self._listeners.subscribe(callback)

    async def get_token(self, session: Optional[dict[str, Any]] = None) -> Optional[str]:
        return (session or {}).get("access_token")

    async def refresh_token(self, refresh_token: Optional[str] = None) -> Optional[str]:
        if not refresh_token:
            return None

        payload = await self._post(
            SECURE_TOKEN_URL,
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            form=True,
        )
        if payload.get("user_id"):
            self._listeners.emit(await self._profiles.get_user(payload["user_id"]))
        return payload["id_token"]

    async def _ensure_profile(self, payload: dict[str, Any], email: str) -> User:
        uid = payload["localId"]
        user = await self._profiles.get_user(uid)
        if user is None:
            return await self._profiles.create_user(
                UserCreate(
                    id=uid,
                    email=payload.get("email") or email,
                    name=payload.get("displayName", ""),
                    last_login=utc_now(),
                )
            )
        return await self._profiles.update_user(uid, UserUpdate(last_login=utc_now()))

    async def _map_account(self, account: dict[str, Any]) -> User:
        """Merge an Identity Toolkit account with its Firestore profile."""
        uid = account["localId"]
        profile = await self._profiles.get_user(uid) or User(id=uid, email="")
        return profile.model_copy(
            update={
                "email": account.get("email") or profile.email,
                "name": profile.name or account.get("displayName", ""),
                "profile_picture": profile.profile_picture or account.get("photoUrl", ""),
                "is_email_verified": bool(account.get("emailVerified")),
            }
        )

    async def _post(self, url: str, body: dict[str, Any], form: bool = False) -> dict[str, Any]:
        """POST to a Google identity endpoint and return the decoded body."""
        try:
            async with httpx.AsyncClient() as client:
                if form:
                    response = await client.post(
                        url, params={"key": self._api_key}, data=body, timeout=REQUEST_TIMEOUT
                    )
                else:
                    response = await client.post(
                        url, params={"key": self._api_key}, json=body, timeout=REQUEST_TIMEOUT
                    )
        except httpx.HTTPError as e:
            raise ProviderError(f"Identity request failed: {e}", service=ProviderName.FIREBASE.value) from e

        if response.status_code >= 400:
            raise self._error_from(response)
        return response.json()

    def _error_from(self, response: httpx.Response) -> MuWiseError:
        try:
            error = response.json().get("error", {})
        except ValueError:
            error = {}
        if isinstance(error, str):
            # The secure token endpoint returns {"error": "<CODE>"}
            code = error
        else:
            code = str(error.get("message", "")).split(" : ")[0]

        if code in CREDENTIAL_ERRORS:
            return AuthError(code.replace("_", " ").capitalize(), code=code)
        return ProviderError(
            f"Identity request failed with status {response.status_code}: {code or response.text}",
            service=ProviderName.FIREBASE.value,
            details={"status_code": response.status_code},
        )

    @staticmethod
    def _session_from(payload: dict[str, Any]) -> dict[str, Any]:
        return {
            "access_token": payload["idToken"],
            "refresh_token": payload.get("refreshToken", ""),
            "expires_in": int(payload.get("expiresIn", 3600)),
        }


# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------


class FirebaseStorageClient(BaseRepository[Any]):
    """
    Object storage in the project's Cloud Storage bucket.

    Firebase has one bucket per project, so the logical bucket name becomes
    the first path segment. Uploads always overwrite.
    """

    provider = ProviderName.FIREBASE.value
    sdk_errors = (GoogleAPIError, FirebaseError)

    async def upload_file(
        self,
        bucket: str,
        path: str,
        data: bytes,
        options: Optional[dict[str, Any]] = None,
    ) -> str:
        options = options or {}
        with self._guard("upload_file"):
            blob = self._db.blob(self._object_name(bucket, path))
            blob.upload_from_string(
                data,
                content_type=options.get("content_type", "application/octet-stream"),
            )
        return self.get_public_url(bucket, path)

    async def download_file(self, bucket: str, path: str) -> bytes:
        with self._guard("download_file"):
            return self._db.blob(self._object_name(bucket, path)).download_as_bytes()

    async def delete_file(self, bucket: str, path: str) -> None:
        with self._guard("delete_file"):
            self._db.blob(self._object_name(bucket, path)).delete()

    def get_public_url(self, bucket: str, path: str) -> str:
        object_name = quote(self._object_name(bucket, path), safe="")
        return f"{STORAGE_DOWNLOAD_URL}/{self._db.name}/o/{object_name}?alt=media"

    async def get_signed_url(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        # Download URLs do not expire; hand back the permanent one.
        return self.get_public_url(bucket, path)

    @staticmethod
    def _object_name(bucket: str, path: str) -> str:
        return f"{bucket}/{path.lstrip('/')}"


def create_firebase_database_client() -> DatabaseClient:
    """Build the Firebase capability set from the configured app."""
    settings = get_settings()
    if not settings.firebase_api_key:
        raise ProviderError(
            "Firebase configuration missing. Set FIREBASE_API_KEY environment variable.",
            service=ProviderName.FIREBASE.value,
            code=NOT_CONFIGURED,
        )

    data = FirestoreDataClient(get_firestore_client())
    return DatabaseClient(
        provider=ProviderName.FIREBASE,
        auth=FirebaseAuthClient(settings.firebase_api_key, data),
        data=data,
        storage=FirebaseStorageClient(get_firebase_bucket()),
    )
