"""
Migration module.

One-way bulk transfer of users and agreements from Firebase to Supabase,
plus a count-based reconciliation check.

Public API:
- MigrationTools: migrate_users, migrate_agreements, migrate_files,
  run_full_migration, validate_migration
- MigrationAction: the command names accepted by the route and CLI
- Result models: MigrationResult, MigrationStats, ValidationReport
"""

from .models import MigrationAction, MigrationResult, MigrationStats, ValidationReport
from .tools import MigrationTools, create_migration_tools, run_action

__all__ = [
    "MigrationAction",
    "MigrationResult",
    "MigrationStats",
    "MigrationTools",
    "ValidationReport",
    "create_migration_tools",
    "run_action",
]
