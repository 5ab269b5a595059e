from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Enum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.db.database import Base
from src.models.base import TimestampMixin

# datetime 可表示的最大 unix 秒數（9999-12-31 23:59:59 UTC）
MAX_START_TIME = 253402300799


def as_utc(dt: datetime) -> datetime:
    """沒有時區的 datetime 一律視為 UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class ContestPlatform(enum.Enum):
    codeforces = "Codeforces"
    leetcode = "LeetCode"


class Contest(Base, TimestampMixin):
    __tablename__ = "contests"
    __table_args__ = (
        UniqueConstraint("platform", "start_time", name="uq_contest_platform_start"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    platform: Mapped[ContestPlatform] = mapped_column(
        Enum(ContestPlatform), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_time: Mapped[int] = mapped_column(Integer, nullable=False)  # unix seconds
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # seconds

    @property
    def start_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.start_time, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "name": self.name,
            "startTime": self.start_time,
            "duration": self.duration,
        }

    def __repr__(self) -> str:
        return f"<Contest {self.platform.value}:{self.name} @ {self.start_time}>"
