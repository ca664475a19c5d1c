"""Tests for the user profile service."""

import pytest
import pytest_asyncio

from modules.users.exceptions import ProfileNotFoundError
from modules.users.models import UpdateProfileRequest
from modules.users.service import UserService
from modules.users.storage import StorageService
from providers.exceptions import UserNotFoundError
from shared.models import UserCreate


@pytest.fixture
def service(factory) -> UserService:
    return UserService(factory, StorageService(factory))


@pytest_asyncio.fixture
async def user(data_client):
    return await data_client.create_user(UserCreate(id="user-1", email="a@example.com", name="Ada"))


class TestUserService:
    @pytest.mark.asyncio
    async def test_get_profile(self, service, user):
        profile = await service.get_profile("user-1")
        assert profile.email == "a@example.com"

    @pytest.mark.asyncio
    async def test_missing_profile(self, service):
        with pytest.raises(ProfileNotFoundError):
            await service.get_profile("ghost")

    @pytest.mark.asyncio
    async def test_update_profile_only_touches_given_fields(self, service, user):
        updated = await service.update_profile("user-1", UpdateProfileRequest(company="Label Co"))

        assert updated.company == "Label Co"
        assert updated.name == "Ada"
        assert updated.updated_at >= user.updated_at

    @pytest.mark.asyncio
    async def test_update_missing_profile(self, service):
        with pytest.raises(UserNotFoundError):
            await service.update_profile("ghost", UpdateProfileRequest(name="Bo"))

    @pytest.mark.asyncio
    async def test_photo_upload_sets_profile_picture(self, service, data_client, user):
        result = await service.upload_profile_photo("user-1", "me.png", b"\x89PNG", "image/png")

        stored = await data_client.get_user("user-1")
        assert stored.profile_picture == result.download_url
        assert result.path == "user-1/me.png"
