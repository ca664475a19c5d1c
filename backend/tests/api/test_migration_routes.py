"""Tests for the migration command endpoints."""

import pytest
from unittest.mock import patch

from api.dependencies import get_migration_tools_builder, reset_container
from modules.migration.tools import MigrationTools
from shared.database import reset_client_cache
from shared.exceptions import ProviderError
from shared.models import User
from tests.conftest import InMemoryDataClient


class BrokenTarget(InMemoryDataClient):
    async def count_users(self) -> int:
        raise ProviderError("connection refused", service="supabase")


@pytest.fixture
def stores():
    source, target = InMemoryDataClient(), InMemoryDataClient()
    source.users["uid-1"] = User(id="uid-1", email="a@example.com")
    return source, target


@pytest.fixture
def migration_client(app, client, stores):
    app.dependency_overrides[get_migration_tools_builder] = lambda: lambda: MigrationTools(*stores)
    return client


class TestMigrateEndpoint:
    def test_lists_actions(self, migration_client):
        response = migration_client.get("/api/migrate")

        assert response.status_code == 200
        assert response.json()["availableActions"] == [
            "migrate-users",
            "migrate-agreements",
            "migrate-files",
            "full-migration",
            "validate",
        ]

    def test_migrate_users(self, migration_client, stores):
        response = migration_client.post("/api/migrate", json={"action": "migrate-users"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "action": "migrate-users",
            "result": {"migrated": 1, "errors": []},
        }
        assert "uid-1" in stores[1].users

    def test_validate_reports_mismatch(self, migration_client):
        response = migration_client.post("/api/migrate", json={"action": "validate"})

        result = response.json()["result"]
        assert result["valid"] is False
        assert result["issues"] == ["User count mismatch: Firebase 1, Supabase 0"]

    def test_missing_action(self, migration_client):
        response = migration_client.post("/api/migrate", json={})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Action is required"}

    def test_invalid_action(self, migration_client):
        response = migration_client.post("/api/migrate", json={"action": "drop-everything"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid action: drop-everything"}

    def test_store_failure_is_reported_in_body(self, app, client, stores):
        app.dependency_overrides[get_migration_tools_builder] = lambda: lambda: MigrationTools(stores[0], BrokenTarget())

        response = client.post("/api/migrate", json={"action": "validate"})

        assert response.status_code == 200
        assert response.json()["result"]["issues"] == ["Validation failed: connection refused"]

    def test_unconfigured_stores_are_reported_in_body(self, client):
        reset_container()
        with patch("shared.database.firebase_admin.delete_app"):
            reset_client_cache()
        try:
            with patch("shared.database.get_settings") as mock_settings:
                mock_settings.return_value.firebase_project_id = ""
                mock_settings.return_value.supabase_url = ""
                response = client.post("/api/migrate", json={"action": "validate"})
        finally:
            reset_container()

        assert response.status_code == 502
        assert response.json() == {
            "success": False,
            "error": "Firebase configuration missing. Set FIREBASE_PROJECT_ID environment variable.",
        }
