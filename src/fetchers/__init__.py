from src.fetchers.base import BaseContestFetcher, ContestResult, FetchResult
from src.fetchers.codeforces import CodeforcesFetcher
from src.fetchers.leetcode import LeetCodeScheduleFetcher


def get_default_fetchers():
    """所有比賽來源（外部 API + 週期性比賽產生器）"""
    return [CodeforcesFetcher(), LeetCodeScheduleFetcher()]


__all__ = [
    "BaseContestFetcher",
    "CodeforcesFetcher",
    "ContestResult",
    "FetchResult",
    "LeetCodeScheduleFetcher",
    "get_default_fetchers",
]
