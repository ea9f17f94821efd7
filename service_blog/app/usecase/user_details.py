"""
User detail usecases. These reads always hit the data source.
"""

from ..domain.models import UserDetail
from ..domain.repositories import UserDetailRepository


class UserDetailUsecase:

    def __init__(self, repository: UserDetailRepository):
        self.repository = repository

    async def get_user_detail_by_id(self, user_id: int) -> UserDetail:
        return await self.repository.find_detail_by_id(user_id)

    async def get_user_detail_by_username(self, username: str) -> UserDetail:
        return await self.repository.find_detail_by_username(username)
