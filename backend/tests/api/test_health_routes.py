"""Tests for the health check endpoint."""

import os
from unittest.mock import patch

from shared.config import get_settings


class TestHealthEndpoint:
    def test_health_check(self, client):
        """Health endpoint should return 200 with status."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["provider"] == "supabase"

    def test_health_response_structure(self, client):
        data = client.get("/api/health").json()
        assert set(data) == {"status", "timestamp", "environment", "provider", "version", "env"}
        assert set(data["env"]) == {"hasFirebase", "hasSupabase", "hasResend", "hasStripe"}

    def test_flags_report_presence_only(self, client):
        get_settings.cache_clear()
        try:
            with patch.dict(os.environ, {"STRIPE_SECRET_KEY": "sk_test_123", "RESEND_API_KEY": ""}):
                get_settings.cache_clear()
                data = client.get("/api/health").json()
        finally:
            get_settings.cache_clear()

        assert data["env"]["hasStripe"] is True
        assert data["env"]["hasResend"] is False
        assert "sk_test_123" not in str(data)
