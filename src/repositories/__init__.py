from functools import lru_cache

from src.db.database import get_session_factory
from src.repositories.contests import ContestRepository
from src.repositories.users import UserRepository


@lru_cache
def get_contest_repository() -> ContestRepository:
    """整個行程共用一個 repository，API 與排程器才會共用同一把鎖"""
    return ContestRepository(get_session_factory())


@lru_cache
def get_user_repository() -> UserRepository:
    return UserRepository(get_session_factory())


__all__ = [
    "ContestRepository",
    "UserRepository",
    "get_contest_repository",
    "get_user_repository",
]
