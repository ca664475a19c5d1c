"""Tests for shared/database.py."""

import os

import pytest
from unittest.mock import patch, MagicMock

from shared.database import (
    FIREBASE_APP_NAME,
    create_supabase_anon_client,
    get_firebase_app,
    get_supabase_client,
    reset_client_cache,
)
from shared.exceptions import ProviderError


# Environment variables for integration tests
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")


class TestSupabaseClient:
    def setup_method(self):
        """Reset cache before each test."""
        reset_client_cache()

    @patch("shared.database.create_client")
    @patch("shared.database.get_settings")
    def test_get_supabase_client_creates_client(self, mock_settings, mock_create):
        """Should create client with service role key."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_service_role_key = "test-key"
        mock_create.return_value = MagicMock()

        client = get_supabase_client()

        mock_create.assert_called_once_with(
            "https://test.supabase.co",
            "test-key",
        )
        assert client is not None

    @patch("shared.database.create_client")
    @patch("shared.database.get_settings")
    def test_get_supabase_client_caches_client(self, mock_settings, mock_create):
        """Should cache the client and not recreate it."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_service_role_key = "test-key"
        mock_create.return_value = MagicMock()

        client1 = get_supabase_client()
        client2 = get_supabase_client()

        # Should only be called once due to caching
        mock_create.assert_called_once()
        assert client1 is client2

    @patch("shared.database.get_settings")
    def test_get_supabase_client_raises_without_config(self, mock_settings):
        """Should raise if configuration is missing."""
        mock_settings.return_value.supabase_url = ""
        mock_settings.return_value.supabase_service_role_key = ""

        with pytest.raises(ProviderError, match="configuration missing") as exc_info:
            get_supabase_client()

        assert exc_info.value.code == "PROVIDER_NOT_CONFIGURED"
        assert exc_info.value.status_code == 502


class TestSupabaseAnonClient:
    @patch("shared.database.create_client")
    @patch("shared.database.get_settings")
    def test_creates_fresh_client_each_call(self, mock_settings, mock_create):
        """Each auth flow gets its own anon client."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_anon_key = "test-anon-key"
        mock_create.side_effect = [MagicMock(name="client1"), MagicMock(name="client2")]

        client1 = create_supabase_anon_client()
        client2 = create_supabase_anon_client()

        mock_create.assert_called_with("https://test.supabase.co", "test-anon-key")
        assert client1 is not client2

    @patch("shared.database.get_settings")
    def test_raises_without_anon_key(self, mock_settings):
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_anon_key = ""

        with pytest.raises(ProviderError, match="configuration missing"):
            create_supabase_anon_client()


class TestFirebaseApp:
    def setup_method(self):
        reset_client_cache()

    def teardown_method(self):
        with patch("shared.database.firebase_admin.delete_app"):
            reset_client_cache()

    @patch("shared.database.firebase_admin.initialize_app")
    @patch("shared.database.credentials.Certificate")
    @patch("shared.database.get_settings")
    def test_initializes_named_app_from_service_account(self, mock_settings, mock_cert, mock_init):
        mock_settings.return_value.firebase_project_id = "muwise-test"
        mock_settings.return_value.firebase_credentials_path = "/secrets/service-account.json"
        mock_settings.return_value.firebase_storage_bucket = "muwise-test.appspot.com"
        mock_init.return_value = MagicMock(name="app")

        app1 = get_firebase_app()
        app2 = get_firebase_app()

        mock_cert.assert_called_once_with("/secrets/service-account.json")
        mock_init.assert_called_once_with(
            mock_cert.return_value,
            {"projectId": "muwise-test", "storageBucket": "muwise-test.appspot.com"},
            name=FIREBASE_APP_NAME,
        )
        assert app1 is app2

    @patch("shared.database.get_settings")
    def test_raises_without_project_id(self, mock_settings):
        mock_settings.return_value.firebase_project_id = ""

        with pytest.raises(ProviderError, match="configuration missing"):
            get_firebase_app()


class TestResetClientCache:
    def setup_method(self):
        """Reset cache before each test."""
        reset_client_cache()

    @patch("shared.database.create_client")
    @patch("shared.database.get_settings")
    def test_reset_client_cache(self, mock_settings, mock_create):
        """Should reset the cache and allow new client creation."""
        mock_settings.return_value.supabase_url = "https://test.supabase.co"
        mock_settings.return_value.supabase_service_role_key = "test-key"
        mock_create.side_effect = [MagicMock(name="client1"), MagicMock(name="client2")]

        client1 = get_supabase_client()
        reset_client_cache()
        client2 = get_supabase_client()

        assert mock_create.call_count == 2
        assert client1 is not client2


# =============================================================================
# Integration Tests - Require real Supabase credentials
# =============================================================================


@pytest.mark.skipif(
    not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY,
    reason="SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY environment variables not set"
)
class TestSupabaseIntegration:
    """Integration tests requiring real Supabase credentials.

    These tests are skipped by default. To run them:
        SUPABASE_URL=https://xxx.supabase.co SUPABASE_SERVICE_ROLE_KEY=xxx \
            uv run pytest tests/shared/test_database.py -v -k Integration
    """

    def setup_method(self):
        reset_client_cache()

    def test_agreements_table_is_reachable(self):
        from shared.config import get_settings
        get_settings.cache_clear()

        client = get_supabase_client()
        response = client.table("agreements").select("id", count="exact").limit(1).execute()
        assert response.count is not None
