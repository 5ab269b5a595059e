from fastapi import APIRouter

from src.api.contests import router as contests_router
from src.api.users import router as users_router

api_router = APIRouter()
api_router.include_router(contests_router)
api_router.include_router(users_router)
