"""
User usecases.
"""

from typing import List, Optional

from ..domain.models import User
from ..domain.repositories import UserRepository


class UserUsecase:
    """Thin pass-through over a user repository (cached or direct)."""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def get_all_users(self) -> List[User]:
        return await self.repository.find_all()

    async def get_user_by_id(self, user_id: int) -> User:
        return await self.repository.find_by_id(user_id)

    async def create_user(self, name: str, email: str, age: Optional[int] = None) -> User:
        return await self.repository.create(User(name=name, email=email, age=age))

    async def update_user(self, user_id: int, name: Optional[str] = None,
                          email: Optional[str] = None, age: Optional[int] = None) -> User:
        """Apply the given fields to the stored user and save it."""
        user = await self.repository.find_by_id(user_id)

        changes = {}
        if name is not None:
            changes["name"] = name
        if email is not None:
            changes["email"] = email
        if age is not None:
            changes["age"] = age

        return await self.repository.update(user.model_copy(update=changes))

    async def delete_user(self, user_id: int) -> None:
        await self.repository.delete(user_id)
