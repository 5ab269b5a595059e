from __future__ import annotations

import threading
from typing import Iterable, List, Set, Tuple

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from src.errors import StoreError
from src.fetchers.base import ContestResult
from src.models.contest import MAX_START_TIME, Contest, ContestPlatform


def _is_storable(contest: ContestResult) -> bool:
    return contest.duration >= 0 and 0 <= contest.start_time <= MAX_START_TIME


class ContestRepository:
    """Stores the merged contest set.

    The whole collection is replaced on every merge cycle; there is no
    per-record update.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self._lock = threading.RLock()

    def replace_all(self, contests: Iterable[ContestResult]) -> int:
        """Atomically discard every stored contest and store ``contests``.

        Duplicate ``(platform, start_time)`` pairs keep their first
        occurrence. Returns the number of contests stored.

        Raises:
            StoreError: the transaction failed and was rolled back.
        """
        rows: List[Contest] = []
        seen: Set[Tuple[ContestPlatform, int]] = set()
        for contest in contests:
            if not _is_storable(contest):
                logger.warning(f"Skipping invalid contest: {contest}")
                continue
            if contest.key in seen:
                logger.debug(f"Skipping duplicate contest: {contest}")
                continue
            seen.add(contest.key)
            rows.append(
                Contest(
                    platform=contest.platform,
                    name=contest.name,
                    start_time=contest.start_time,
                    duration=contest.duration,
                )
            )

        # 未 commit 的 session 關閉時會自動 rollback
        with self._lock:
            try:
                with self.session_factory() as session:
                    session.execute(delete(Contest))
                    session.add_all(rows)
                    session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Failed to replace contests: {e}")
                raise StoreError(f"replace_all failed: {e}") from e

        logger.info(f"Stored {len(rows)} contests")
        return len(rows)

    def list_ordered_by_start(self) -> List[Contest]:
        with self._lock:
            try:
                with self.session_factory() as session:
                    result = session.execute(
                        select(Contest).order_by(Contest.start_time.asc(), Contest.id.asc())
                    )
                    contests = list(result.scalars().all())
                    session.expunge_all()
                    return contests
            except SQLAlchemyError as e:
                logger.error(f"Failed to list contests: {e}")
                raise StoreError(f"list_ordered_by_start failed: {e}") from e
