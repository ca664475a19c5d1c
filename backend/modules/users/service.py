"""
User profile service.
"""

import logging

from providers.factory import DatabaseClientFactory
from shared.models import User, UserUpdate

from .exceptions import ProfileNotFoundError
from .interfaces import IStorageService, IUserService
from .models import FileUploadResult, UpdateProfileRequest

logger = logging.getLogger(__name__)


class UserService(IUserService):
    """Profile reads and writes through the provider facade."""

    def __init__(self, factory: DatabaseClientFactory, storage: IStorageService):
        self._factory = factory
        self._storage = storage

    @property
    def _data(self):
        return self._factory.get().data

    async def get_profile(self, user_id: str) -> User:
        user = await self._data.get_user(user_id)
        if user is None:
            raise ProfileNotFoundError(user_id)
        return user

    async def update_profile(self, user_id: str, request: UpdateProfileRequest) -> User:
        update = UserUpdate(**request.model_dump(exclude_unset=True))
        user = await self._data.update_user(user_id, update)
        logger.info("Updated profile of user %s", user_id)
        return user

    async def upload_profile_photo(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> FileUploadResult:
        result = await self._storage.upload_profile_photo(user_id, filename, data, content_type)
        await self._data.update_user(user_id, UserUpdate(profile_picture=result.download_url))
        logger.info("Stored profile photo for user %s at %s", user_id, result.path)
        return result
