"""
Usecase layer for the Blog service.
"""

from .users import UserUsecase
from .posts import PostUsecase
from .user_details import UserDetailUsecase
from .selector import UsecasePair, parse_no_cache

__all__ = ["UserUsecase", "PostUsecase", "UserDetailUsecase", "UsecasePair", "parse_no_cache"]
