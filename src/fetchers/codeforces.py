from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from src.config import get_settings
from src.errors import TransientFetchError
from src.fetchers.base import BaseContestFetcher, ContestResult, FetchResult
from src.models.contest import ContestPlatform

UPCOMING_PHASE = "BEFORE"
REQUEST_HEADERS = {"User-Agent": "contest-alert/0.1"}


class CodeforcesFetcher(BaseContestFetcher):
    source = "codeforces"

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        settings = get_settings()
        self.api_url = api_url or settings.codeforces_api_url
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        # 未注入 client 時每次請求自建並關閉
        self.client = client

    def fetch(self, now: Optional[datetime] = None) -> FetchResult:
        try:
            records = self._request()
            contests = [
                self._parse(record)
                for record in records
                if record.get("phase") == UPCOMING_PHASE
            ]
        except TransientFetchError as e:
            logger.error(f"Codeforces fetch failed: {e}")
            return FetchResult.failed(self.source, str(e))

        logger.info(f"Fetched {len(contests)} upcoming Codeforces contests")
        return FetchResult(source=self.source, contests=contests)

    def _get(self) -> httpx.Response:
        if self.client is not None:
            return self.client.get(self.api_url)
        with httpx.Client(timeout=self.timeout, headers=REQUEST_HEADERS) as client:
            return client.get(self.api_url)

    def _request(self) -> List[Dict[str, Any]]:
        try:
            resp = self._get()
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise TransientFetchError(
                self.source, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise TransientFetchError(self.source, f"request failed: {e}") from e
        except ValueError as e:
            raise TransientFetchError(self.source, f"invalid JSON: {e}") from e

        if not isinstance(data, dict) or data.get("status") != "OK":
            comment = data.get("comment") if isinstance(data, dict) else None
            raise TransientFetchError(self.source, f"API status not OK: {comment}")

        records = data.get("result")
        if not isinstance(records, list):
            raise TransientFetchError(self.source, "missing contest list")
        return [r for r in records if isinstance(r, dict)]

    def _parse(self, record: Dict[str, Any]) -> ContestResult:
        try:
            return ContestResult(
                platform=ContestPlatform.codeforces,
                name=str(record["name"]),
                start_time=int(record["startTimeSeconds"]),
                duration=int(record["durationSeconds"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransientFetchError(
                self.source, f"malformed contest record {record.get('id')}: {e!r}"
            ) from e
