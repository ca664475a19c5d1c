#!/usr/bin/env python3
"""
Firebase to Supabase data migration runner.

Copies users and agreements from Firestore into the Supabase tables,
keyed by the Firestore ids so a re-run overwrites instead of duplicating.

Usage:
    uv run python run_migration.py validate            # Compare record counts
    uv run python run_migration.py migrate-users       # Users only
    uv run python run_migration.py full-migration      # Users, agreements, files

Configuration:
    Both stores must be configured in your .env file:
    FIREBASE_PROJECT_ID, FIREBASE_CREDENTIALS_PATH (or application default credentials)
    SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.table import Table

from modules.migration.models import (
    MigrationAction,
    MigrationResult,
    MigrationStats,
    ValidationReport,
)
from modules.migration.tools import create_migration_tools, run_action
from shared.config import get_settings
from shared.exceptions import MuWiseError

console = Console()


def show_result(action: MigrationAction, result) -> bool:
    """Print an action outcome. Returns False when anything went wrong."""
    if isinstance(result, ValidationReport):
        if result.valid:
            console.print("[green]✓[/green] Record counts match")
            return True
        for issue in result.issues:
            console.print(f"[red]✗[/red] {issue}")
        return False

    table = Table(title=f"Migration: {action.value}")
    table.add_column("Entity", style="cyan")
    table.add_column("Migrated", style="green", justify="right")

    if isinstance(result, MigrationStats):
        table.add_row("Users", str(result.users))
        table.add_row("Agreements", str(result.agreements))
        table.add_row("Files", str(result.files))
    elif isinstance(result, MigrationResult):
        table.add_row(action.value.removeprefix("migrate-").capitalize(), str(result.migrated))
    else:
        raise TypeError(f"Unexpected result for {action.value}: {type(result).__name__}")
    errors = result.errors

    console.print(table)
    if isinstance(result, MigrationStats):
        console.print(f"[dim]Completed in {result.duration} ms[/dim]")

    for error in errors:
        console.print(f"[yellow]Warning:[/yellow] {error}")
    return not errors


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Migrate MuWise data from Firebase to Supabase",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  uv run python run_migration.py validate         Compare record counts
  uv run python run_migration.py full-migration   Migrate everything
        """
    )
    parser.add_argument(
        "action",
        choices=[action.value for action in MigrationAction],
        help="Migration command to run"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every migrated record"
    )

    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    console.print("[bold]MuWise Data Migration[/bold]")
    console.print()

    action = MigrationAction(args.action)
    try:
        tools = create_migration_tools()
        result = asyncio.run(run_action(tools, action))
    except MuWiseError as e:
        console.print(f"[red]Migration failed:[/red] {e.message}")
        sys.exit(1)

    if not show_result(action, result):
        sys.exit(1)


if __name__ == "__main__":
    main()
