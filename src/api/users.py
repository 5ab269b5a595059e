from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from src.errors import StoreError
from src.models.user import ReminderPreferences, User
from src.repositories import UserRepository, get_user_repository

router = APIRouter(prefix="/api", tags=["users"])


class CodeforcesPreferences(BaseModel):
    div1: bool = False
    div3: bool = False
    div4: bool = False


class PreferencesPayload(BaseModel):
    leetcode: bool = False
    codeforces: CodeforcesPreferences = Field(default_factory=CodeforcesPreferences)


class UpdatePreferencesRequest(BaseModel):
    reminderPreferences: PreferencesPayload


class UserInfoResponse(BaseModel):
    name: str
    email: str
    reminderPreferences: PreferencesPayload


class UpdatePreferencesResponse(BaseModel):
    message: str
    user: UserInfoResponse


def get_current_user_id(request: Request) -> int:
    """登入流程由外部認證元件負責，它會把使用者 id 放在 request.state.user_id"""
    user_id: Optional[int] = getattr(request.state, "user_id", None)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
) -> User:
    user = await run_in_threadpool(users.get, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _user_info(user: User) -> UserInfoResponse:
    return UserInfoResponse(
        name=user.name,
        email=user.email,
        reminderPreferences=PreferencesPayload(**user.preferences.to_dict()),
    )


@router.get("/user/info", response_model=UserInfoResponse)
async def get_user_info(user: User = Depends(get_current_user)):
    return _user_info(user)


@router.get("/user-preferences", response_model=PreferencesPayload)
async def get_user_preferences(user: User = Depends(get_current_user)):
    return PreferencesPayload(**user.preferences.to_dict())


@router.post("/user/preferences", response_model=UpdatePreferencesResponse)
async def update_user_preferences(
    body: UpdatePreferencesRequest,
    user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    preferences = ReminderPreferences.from_dict(body.reminderPreferences.model_dump())
    try:
        updated = await run_in_threadpool(users.update_preferences, user.id, preferences)
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to update preferences")
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UpdatePreferencesResponse(message="Preferences updated", user=_user_info(updated))
