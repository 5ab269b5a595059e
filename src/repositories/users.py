from __future__ import annotations

from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from src.errors import StoreError
from src.models.user import CATEGORY_COLUMNS, ContestCategory, ReminderPreferences, User


class UserRepository:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get_or_create(self, google_id: str, name: str, email: str) -> User:
        """首次登入時建立使用者，預設不開啟任何通知"""
        with self.session_factory() as session:
            try:
                user = session.execute(
                    select(User).where(User.google_id == google_id)
                ).scalar_one_or_none()
                if user is None:
                    user = User(google_id=google_id, name=name, email=email)
                    user.preferences = ReminderPreferences()
                    session.add(user)
                    session.commit()
                    logger.info(f"Created user {email}")
                session.refresh(user)
                session.expunge(user)
                return user
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"get_or_create failed for {google_id}: {e}") from e

    def get(self, user_id: int) -> Optional[User]:
        with self.session_factory() as session:
            user = session.get(User, user_id)
            if user is not None:
                session.expunge(user)
            return user

    def list_all(self) -> List[User]:
        with self.session_factory() as session:
            try:
                users = list(session.execute(select(User).order_by(User.id)).scalars().all())
                session.expunge_all()
                return users
            except SQLAlchemyError as e:
                raise StoreError(f"list_all failed: {e}") from e

    def update_preferences(
        self, user_id: int, preferences: ReminderPreferences
    ) -> Optional[User]:
        with self.session_factory() as session:
            try:
                user = session.get(User, user_id)
                if user is None:
                    return None
                user.preferences = preferences
                session.commit()
                session.refresh(user)
                session.expunge(user)
                return user
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"update_preferences failed for {user_id}: {e}") from e

    def find_subscribers(self, categories: Iterable[ContestCategory]) -> List[User]:
        """Users with at least one of ``categories`` enabled."""
        conditions = [
            getattr(User, CATEGORY_COLUMNS[category]) == True  # noqa: E712
            for category in categories
        ]
        if not conditions:
            return []

        with self.session_factory() as session:
            try:
                result = session.execute(
                    select(User).where(or_(*conditions)).order_by(User.id)
                )
                users = list(result.scalars().all())
                session.expunge_all()
                return users
            except SQLAlchemyError as e:
                raise StoreError(f"find_subscribers failed: {e}") from e
