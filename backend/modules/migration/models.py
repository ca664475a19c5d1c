"""
Migration module data models.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class MigrationAction(str, Enum):
    """Commands accepted by POST /api/migrate and run_migration.py."""

    MIGRATE_USERS = "migrate-users"
    MIGRATE_AGREEMENTS = "migrate-agreements"
    MIGRATE_FILES = "migrate-files"
    FULL_MIGRATION = "full-migration"
    VALIDATE = "validate"


class MigrationResult(BaseModel):
    """Outcome of one entity migration. Errors are per record and never abort the batch."""

    migrated: int = 0
    errors: list[str] = Field(default_factory=list)


class MigrationStats(BaseModel):
    """Aggregate outcome of a full migration."""

    users: int = 0
    agreements: int = 0
    files: int = 0
    errors: list[str] = Field(default_factory=list)
    duration: int = Field(0, description="Wall time in milliseconds")


class ValidationReport(BaseModel):
    """Count-only reconciliation between source and target."""

    valid: bool
    issues: list[str] = Field(default_factory=list)


class MigrateRequest(BaseModel):
    action: Optional[str] = None


class MigrateResponse(BaseModel):
    success: bool
    action: Optional[str] = None
    result: Optional[Any] = None
    error: Optional[str] = None
