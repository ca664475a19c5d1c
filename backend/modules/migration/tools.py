"""
Cross-provider migration and validation.

Reads every user and agreement from the source store through its bulk
capability and upserts it into the target keyed by the source id, so a
re-run overwrites instead of duplicating. A failing record is reported and
skipped; only a failure to list the source collection aborts that entity.
"""

import logging
import time
from typing import Awaitable, Callable, TypeVar, Union

from pydantic import BaseModel

from providers.base import IBulkDataClient, ProviderName
from shared.exceptions import MuWiseError, ValidationError
from shared.models import Agreement, User

from .models import MigrationAction, MigrationResult, MigrationStats, ValidationReport

logger = logging.getLogger(__name__)

R = TypeVar("R", User, Agreement)

# Failures a single record or listing call can raise: normalized adapter
# errors, and pydantic/parse errors from a malformed stored record.
RECORD_ERRORS = (MuWiseError, ValueError)


class MigrationTools:
    """
    Bulk transfer between two provider data clients.

    The tools talk to the adapters directly instead of going through the
    provider factory, since both stores must be reachable at once.
    """

    def __init__(
        self,
        source: IBulkDataClient,
        target: IBulkDataClient,
        source_name: str = ProviderName.FIREBASE.value,
        target_name: str = ProviderName.SUPABASE.value,
    ):
        self._source = source
        self._target = target
        self._source_name = source_name.capitalize()
        self._target_name = target_name.capitalize()

    async def migrate_users(self) -> MigrationResult:
        return await self._migrate(
            "User",
            self._source.list_users,
            self._target.upsert_user,
            lambda user: user.email,
        )

    async def migrate_agreements(self) -> MigrationResult:
        return await self._migrate(
            "Agreement",
            self._source.list_agreements,
            self._target.upsert_agreement,
            lambda agreement: agreement.title,
        )

    async def migrate_files(self) -> MigrationResult:
        """
        File migration placeholder.

        Object layouts differ per deployment, so copying files needs a
        deployment-specific listing. Reports nothing migrated and no errors.
        """
        logger.warning(
            "File migration requires a deployment-specific implementation; no files were copied"
        )
        return MigrationResult()

    async def run_full_migration(self) -> MigrationStats:
        """Run users, agreements and files in sequence and aggregate the outcome."""
        started = time.monotonic()
        logger.info("Starting full migration from %s to %s", self._source_name, self._target_name)

        users = await self.migrate_users()
        agreements = await self.migrate_agreements()
        files = await self.migrate_files()

        stats = MigrationStats(
            users=users.migrated,
            agreements=agreements.migrated,
            files=files.migrated,
            errors=[*users.errors, *agreements.errors, *files.errors],
            duration=int((time.monotonic() - started) * 1000),
        )
        logger.info(
            "Migration completed: %d users, %d agreements, %d files, %d errors in %d ms",
            stats.users,
            stats.agreements,
            stats.files,
            len(stats.errors),
            stats.duration,
        )
        return stats

    async def validate_migration(self) -> ValidationReport:
        """Compare per-entity record counts between source and target."""
        issues: list[str] = []
        try:
            checks = (
                ("User", self._source.count_users, self._target.count_users),
                ("Agreement", self._source.count_agreements, self._target.count_agreements),
            )
            for entity, count_source, count_target in checks:
                source_count = await count_source()
                target_count = await count_target()
                if source_count != target_count:
                    issues.append(
                        f"{entity} count mismatch: {self._source_name} {source_count}, "
                        f"{self._target_name} {target_count}"
                    )
        except RECORD_ERRORS as e:
            issues.append(f"Validation failed: {_message(e)}")
            return ValidationReport(valid=False, issues=issues)

        return ValidationReport(valid=not issues, issues=issues)

    async def _migrate(
        self,
        entity: str,
        list_records: Callable[[], Awaitable[list[R]]],
        upsert: Callable[[R], Awaitable[None]],
        label: Callable[[R], str],
    ) -> MigrationResult:
        result = MigrationResult()
        logger.info("Starting %s migration", entity.lower())

        try:
            records = await list_records()
        except RECORD_ERRORS as e:
            result.errors.append(f"{entity} migration failed: {_message(e)}")
            logger.error("%s migration aborted: %s", entity, _message(e))
            return result

        for record in records:
            try:
                await upsert(record)
            except RECORD_ERRORS as e:
                result.errors.append(f"{entity} {record.id}: {_message(e)}")
                logger.warning("Failed to migrate %s %s: %s", entity.lower(), record.id, _message(e))
                continue
            result.migrated += 1
            logger.debug("Migrated %s: %s", entity.lower(), label(record))

        logger.info(
            "%s migration completed: %d migrated, %d errors",
            entity,
            result.migrated,
            len(result.errors),
        )
        return result


def _message(error: Exception) -> str:
    return error.message if isinstance(error, MuWiseError) else str(error)


def create_migration_tools() -> MigrationTools:
    """Firestore as source, Supabase tables as target, both from configuration."""
    from providers.firebase import FirestoreDataClient
    from providers.supabase import SupabaseDataClient
    from shared.database import get_firestore_client, get_supabase_client

    return MigrationTools(
        source=FirestoreDataClient(get_firestore_client()),
        target=SupabaseDataClient(get_supabase_client()),
    )


async def run_action(
    tools: MigrationTools,
    action: Union[MigrationAction, str],
) -> BaseModel:
    """
    Dispatch one migration command.

    Raises:
        ValidationError: If the action name is unknown
    """
    try:
        action = MigrationAction(action)
    except ValueError as e:
        raise ValidationError(f"Invalid action: {action}", code="INVALID_ACTION") from e

    handlers = {
        MigrationAction.MIGRATE_USERS: tools.migrate_users,
        MigrationAction.MIGRATE_AGREEMENTS: tools.migrate_agreements,
        MigrationAction.MIGRATE_FILES: tools.migrate_files,
        MigrationAction.FULL_MIGRATION: tools.run_full_migration,
        MigrationAction.VALIDATE: tools.validate_migration,
    }
    return await handlers[action]()
