from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from src.db.database import Base
from src.models.base import TimestampMixin
from src.models.contest import ContestPlatform


class ContestCategory(enum.Enum):
    leetcode = "leetcode"
    codeforces_div1 = "codeforces_div1"
    codeforces_div3 = "codeforces_div3"
    codeforces_div4 = "codeforces_div4"


PLATFORM_CATEGORIES: Dict[ContestPlatform, FrozenSet[ContestCategory]] = {
    ContestPlatform.leetcode: frozenset({ContestCategory.leetcode}),
    ContestPlatform.codeforces: frozenset(
        {
            ContestCategory.codeforces_div1,
            ContestCategory.codeforces_div3,
            ContestCategory.codeforces_div4,
        }
    ),
}


def categories_for_platform(platform: ContestPlatform) -> FrozenSet[ContestCategory]:
    return PLATFORM_CATEGORIES.get(platform, frozenset())


@dataclass
class ReminderPreferences:
    """Per-user notification flags, one per contest category."""

    leetcode: bool = False
    codeforces_div1: bool = False
    codeforces_div3: bool = False
    codeforces_div4: bool = False

    def is_enabled(self, category: ContestCategory) -> bool:
        return bool(getattr(self, category.value))

    def enabled_categories(self) -> FrozenSet[ContestCategory]:
        return frozenset(c for c in ContestCategory if self.is_enabled(c))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leetcode": self.leetcode,
            "codeforces": {
                "div1": self.codeforces_div1,
                "div3": self.codeforces_div3,
                "div4": self.codeforces_div4,
            },
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ReminderPreferences":
        """Build from the nested ``{"leetcode": .., "codeforces": {..}}`` shape.

        Missing keys fall back to ``False``.
        """
        data = data or {}
        codeforces = data.get("codeforces") or {}
        return cls(
            leetcode=bool(data.get("leetcode", False)),
            codeforces_div1=bool(codeforces.get("div1", False)),
            codeforces_div3=bool(codeforces.get("div3", False)),
            codeforces_div4=bool(codeforces.get("div4", False)),
        )


# 類別 -> 對應的 User 欄位名稱
CATEGORY_COLUMNS: Dict[ContestCategory, str] = {
    ContestCategory.leetcode: "notify_leetcode",
    ContestCategory.codeforces_div1: "notify_codeforces_div1",
    ContestCategory.codeforces_div3: "notify_codeforces_div3",
    ContestCategory.codeforces_div4: "notify_codeforces_div4",
}


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    google_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    notify_leetcode: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notify_codeforces_div1: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    notify_codeforces_div3: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    notify_codeforces_div4: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    @property
    def preferences(self) -> ReminderPreferences:
        return ReminderPreferences(
            **{
                category.value: bool(getattr(self, column))
                for category, column in CATEGORY_COLUMNS.items()
            }
        )

    @preferences.setter
    def preferences(self, prefs: ReminderPreferences) -> None:
        for category, column in CATEGORY_COLUMNS.items():
            setattr(self, column, prefs.is_enabled(category))

    def __repr__(self) -> str:
        return f"<User {self.google_id}:{self.email}>"
