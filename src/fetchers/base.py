from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from src.models.contest import ContestPlatform


@dataclass(frozen=True)
class ContestResult:
    platform: ContestPlatform
    name: str
    start_time: int  # unix seconds
    duration: int  # seconds

    @property
    def key(self):
        return (self.platform, self.start_time)


@dataclass
class FetchResult:
    """Outcome of one fetch: ``ok`` with zero or more contests, or a failure."""

    source: str
    contests: List[ContestResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, source: str, error: str) -> "FetchResult":
        return cls(source=source, contests=[], error=error)


class BaseContestFetcher(ABC):
    source: str = ""

    @abstractmethod
    def fetch(self, now: datetime) -> FetchResult:
        """取得 now 之後尚未開始的比賽"""
        ...
