"""
Shared infrastructure for MuWise backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase and Firebase client factories
- exceptions: Base exception classes
- models: Canonical domain models (User, Agreement, Signer)

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import (
    get_supabase_client,
    create_supabase_anon_client,
    get_firestore_client,
    get_firebase_bucket,
    reset_client_cache,
)
from .exceptions import (
    MuWiseError,
    AuthError,
    NotFoundError,
    ValidationError,
    ProviderError,
)
from .models import (
    Agreement,
    AgreementCreate,
    AgreementFilters,
    AgreementStatus,
    AgreementUpdate,
    ActionResult,
    AuthResult,
    Signer,
    SignerCreate,
    SignatureResult,
    User,
    UserCreate,
    UserUpdate,
)

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "create_supabase_anon_client",
    "get_firestore_client",
    "get_firebase_bucket",
    "reset_client_cache",
    "MuWiseError",
    "AuthError",
    "NotFoundError",
    "ValidationError",
    "ProviderError",
    "Agreement",
    "AgreementCreate",
    "AgreementFilters",
    "AgreementStatus",
    "AgreementUpdate",
    "ActionResult",
    "AuthResult",
    "Signer",
    "SignerCreate",
    "SignatureResult",
    "User",
    "UserCreate",
    "UserUpdate",
]
