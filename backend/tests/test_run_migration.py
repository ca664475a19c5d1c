"""Tests for the migration runner's result rendering."""

from unittest.mock import patch

import pytest

from modules.migration.models import MigrationAction, MigrationResult, MigrationStats, ValidationReport
from run_migration import show_result


@pytest.fixture(autouse=True)
def console():
    with patch("run_migration.console") as mock_console:
        yield mock_console


class TestShowResult:
    def test_clean_single_migration(self):
        assert show_result(MigrationAction.MIGRATE_USERS, MigrationResult(migrated=3)) is True

    def test_migration_with_errors(self, console):
        result = MigrationResult(migrated=1, errors=["User uid-2: permission denied"])

        assert show_result(MigrationAction.MIGRATE_USERS, result) is False
        console.print.assert_any_call("[yellow]Warning:[/yellow] User uid-2: permission denied")

    def test_full_migration(self, console):
        stats = MigrationStats(users=2, agreements=5, files=0, errors=[], duration=120)

        assert show_result(MigrationAction.FULL_MIGRATION, stats) is True
        console.print.assert_any_call("[dim]Completed in 120 ms[/dim]")

    def test_failed_validation(self):
        report = ValidationReport(valid=False, issues=["User count mismatch: Firebase 2, Supabase 1"])

        assert show_result(MigrationAction.VALIDATE, report) is False

    def test_unknown_result_type(self):
        with pytest.raises(TypeError, match="Unexpected result for migrate-users"):
            show_result(MigrationAction.MIGRATE_USERS, object())
