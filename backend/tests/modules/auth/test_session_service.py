"""Tests for the session bridge service."""

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest

from modules.auth.exceptions import ExpiredSessionError, InvalidSessionError, MissingSessionError
from modules.auth.service import SessionService, get_session_service, reset_session_service
from tests.conftest import create_test_token

ISSUED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
ISSUED_MS = int(ISSUED.timestamp() * 1000)


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> Clock:
    return Clock(ISSUED)


@pytest.fixture
def service(clock) -> SessionService:
    return SessionService(expires_in=60 * 60 * 24 * 5, clock=clock)


class TestCreateSession:
    def test_token_is_base64_json(self, service):
        token = service.create_session("provider-token")

        payload = json.loads(base64.b64decode(token))
        assert payload == {
            "token": "provider-token",
            "issuedAt": ISSUED_MS,
            "expiresAt": ISSUED_MS + 432000 * 1000,
        }

    def test_default_lifetime_from_settings(self):
        assert SessionService().expires_in == 432000


class TestValidateSession:
    def test_valid_session(self, service, clock):
        token = service.create_session("provider-token")
        clock.now = ISSUED + timedelta(days=4)

        session = service.validate_session(token)

        assert session is not None
        assert session.token == "provider-token"
        assert session.expires_at_datetime == ISSUED + timedelta(days=5)

    def test_expired_session(self, service, clock):
        token = service.create_session("provider-token")
        clock.now = ISSUED + timedelta(days=5)

        assert service.validate_session(token) is None

    @pytest.mark.parametrize(
        "token",
        [
            None,
            "",
            "not base64!",
            base64.b64encode(b"not json").decode(),
            base64.b64encode(b'{"token": "t"}').decode(),
            base64.b64encode(b"[1, 2]").decode(),
        ],
    )
    def test_garbage_is_rejected(self, service, token):
        assert service.validate_session(token) is None


class TestResolveUser:
    def test_reads_subject_and_email(self, service):
        token = service.create_session(create_test_token("user-42", "ada@example.com"))

        user = service.resolve_user(token)

        assert user.id == "user-42"
        assert user.email == "ada@example.com"

    def test_missing_token(self, service):
        with pytest.raises(MissingSessionError):
            service.resolve_user(None)

    def test_expired(self, service, clock):
        token = service.create_session(create_test_token())
        clock.now = ISSUED + timedelta(days=6)

        with pytest.raises(ExpiredSessionError):
            service.resolve_user(token)

    def test_provider_token_not_a_jwt(self, service):
        token = service.create_session("opaque-token")

        with pytest.raises(InvalidSessionError) as exc_info:
            service.resolve_user(token)
        assert exc_info.value.status_code == 401


class TestSingleton:
    def test_get_session_service_is_cached(self):
        assert get_session_service() is get_session_service()

    def test_reset(self):
        first = get_session_service()
        reset_session_service()
        assert get_session_service() is not first
