"""
PostgreSQL user repository.

``User.name`` is stored as ``users.username``. Age has no column and always
reads back as ``None``.
"""

from typing import List

from shared.logging import get_logger
from shared.errors import NotFoundError
from ..domain.models import User
from .postgres import PostgreSQLDatabase

# Accounts created through the API have no credentials yet
PLACEHOLDER_PASSWORD_HASH = "$2a$10$defaultpasswordhash"

USER_COLUMNS = "id, username AS name, email, created_at, updated_at"


class PostgresUserRepository:
    """User CRUD against the ``users`` table."""

    def __init__(self, db: PostgreSQLDatabase):
        self.db = db
        self.logger = get_logger("blog.persistence.users")

    async def find_all(self) -> List[User]:
        rows = await self.db.fetch(
            "find_users",
            f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at DESC"
        )
        return [User.model_validate(dict(row)) for row in rows]

    async def find_by_id(self, user_id: int) -> User:
        row = await self.db.fetchrow(
            "find_user",
            f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
            user_id
        )
        if row is None:
            raise NotFoundError("User not found", {"user_id": user_id})
        return User.model_validate(dict(row))

    async def create(self, user: User) -> User:
        row = await self.db.fetchrow(
            "create_user",
            """
            INSERT INTO users (username, email, password_hash, status, email_verified)
            VALUES ($1, $2, $3, 'active', FALSE)
            RETURNING id, created_at, updated_at
            """,
            user.name, user.email, PLACEHOLDER_PASSWORD_HASH
        )
        created = user.model_copy(update=dict(row))
        self.logger.info("User created", user_id=created.id)
        return created

    async def update(self, user: User) -> User:
        row = await self.db.fetchrow(
            "update_user",
            """
            UPDATE users SET username = $1, email = $2, updated_at = NOW()
            WHERE id = $3
            RETURNING updated_at
            """,
            user.name, user.email, user.id
        )
        if row is None:
            raise NotFoundError("User not found", {"user_id": user.id})
        self.logger.info("User updated", user_id=user.id)
        return user.model_copy(update={"updated_at": row["updated_at"]})

    async def delete(self, user_id: int) -> None:
        status = await self.db.execute("delete_user", "DELETE FROM users WHERE id = $1", user_id)
        # asyncpg returns the command tag, e.g. "DELETE 1"
        if status.split()[-1] == "0":
            raise NotFoundError("User not found", {"user_id": user_id})
        self.logger.info("User deleted", user_id=user_id)
