"""
Client factories for the two backing services.

Supabase: a service-role client for data and storage operations (bypasses
RLS) and anon-key clients for end-user auth flows.

Firebase: one named firebase_admin app per process, from which the
Firestore client and the default Cloud Storage bucket are derived.
"""

from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, storage
from supabase import create_client, Client

from .config import get_settings
from .exceptions import ProviderError

FIREBASE_APP_NAME = "muwise"
NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"

# Module-level client cache
_service_client: Optional[Client] = None
_firebase_app: Optional[firebase_admin.App] = None


def get_supabase_client() -> Client:
    """
    Get Supabase client with service role (bypasses RLS).

    Use this for backend operations that need full database access,
    such as reading and writing agreements on behalf of users.

    Returns:
        Supabase client configured with service role key
    """
    global _service_client

    if _service_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ProviderError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables.",
                service="supabase",
                code=NOT_CONFIGURED,
            )
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def create_supabase_anon_client() -> Client:
    """
    Create a fresh Supabase client with the anon key.

    The client keeps the session of whoever signs in through it, so auth
    flows take a new one per call instead of sharing it across callers.
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise ProviderError(
            "Supabase configuration missing. "
            "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables.",
            service="supabase",
            code=NOT_CONFIGURED,
        )

    return create_client(
        settings.supabase_url,
        settings.supabase_anon_key,
    )


def get_firebase_app() -> firebase_admin.App:
    """
    Get the firebase_admin app, initializing it on first use.

    Uses the service account file from FIREBASE_CREDENTIALS_PATH when set,
    application default credentials otherwise.
    """
    global _firebase_app

    if _firebase_app is None:
        settings = get_settings()
        if not settings.firebase_project_id:
            raise ProviderError(
                "Firebase configuration missing. "
                "Set FIREBASE_PROJECT_ID environment variable.",
                service="firebase",
                code=NOT_CONFIGURED,
            )
        if settings.firebase_credentials_path:
            cred = credentials.Certificate(settings.firebase_credentials_path)
        else:
            cred = credentials.ApplicationDefault()

        options = {"projectId": settings.firebase_project_id}
        if settings.firebase_storage_bucket:
            options["storageBucket"] = settings.firebase_storage_bucket

        _firebase_app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)

    return _firebase_app


def get_firestore_client():
    """Get the Firestore client bound to the MuWise firebase app."""
    return firestore.client(app=get_firebase_app())


def get_firebase_bucket():
    """Get the default Cloud Storage bucket of the MuWise firebase app."""
    return storage.bucket(app=get_firebase_app())


def reset_client_cache() -> None:
    """
    Reset the cached clients.

    Useful for testing or when configuration changes.
    """
    global _service_client, _firebase_app
    _service_client = None
    if _firebase_app is not None:
        firebase_admin.delete_app(_firebase_app)
    _firebase_app = None
