from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from src.errors import StoreError
from src.fetchers import get_default_fetchers
from src.repositories import ContestRepository, get_contest_repository
from src.scheduler.jobs import run_contest_aggregation

router = APIRouter(prefix="/api", tags=["contests"])


class ContestResponse(BaseModel):
    platform: str
    name: str
    startTime: int
    duration: int


class UpdateContestsResponse(BaseModel):
    message: str
    count: int
    failed_sources: List[str]


@router.get("/contests", response_model=List[ContestResponse])
async def list_contests(
    repository: ContestRepository = Depends(get_contest_repository),
):
    # 與 replace_all 共用同一把鎖，只會讀到完整的舊資料或新資料
    try:
        contests = await run_in_threadpool(repository.list_ordered_by_start)
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to load contests")
    return [ContestResponse(**c.to_dict()) for c in contests]


@router.post("/contests/update", response_model=UpdateContestsResponse)
async def update_contests(
    repository: ContestRepository = Depends(get_contest_repository),
):
    result = await run_in_threadpool(
        run_contest_aggregation,
        get_default_fetchers(),
        repository,
        datetime.now(timezone.utc),
    )
    if not result.store_ok:
        raise HTTPException(status_code=500, detail="Failed to update contests")
    return UpdateContestsResponse(
        message="Contests updated",
        count=result.stored,
        failed_sources=result.failed_sources,
    )
