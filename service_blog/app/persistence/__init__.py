"""
PostgreSQL data source for the Blog service.
"""

from .postgres import PostgreSQLDatabase
from .users import PostgresUserRepository
from .posts import PostgresPostRepository
from .user_details import PostgresUserDetailRepository

__all__ = [
    "PostgreSQLDatabase", "PostgresUserRepository", "PostgresPostRepository",
    "PostgresUserDetailRepository",
]
