from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.concurrency import run_in_threadpool

from src.api.router import api_router
from src.config import get_settings
from src.db.database import init_db
from src.errors import StoreError
from src.notifications.dispatcher import ReminderDispatcher
from src.repositories import UserRepository, get_user_repository
from src.scheduler.jobs import run_test_email_broadcast
from src.scheduler.runner import ContestAlertScheduler, start_scheduler

settings = get_settings()
scheduler: Optional[ContestAlertScheduler] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler
    logger.info("Starting up...")
    await init_db()

    # 啟動排程器
    if settings.scheduler_enabled:
        scheduler = start_scheduler()

    yield

    # 關閉排程器
    if scheduler:
        scheduler.shutdown()
        scheduler = None
    logger.info("Shutting down...")


# Disable interactive docs in production
docs_url = None if settings.is_production else "/docs"
redoc_url = None if settings.is_production else "/redoc"

app = FastAPI(
    title="Contest Alert API",
    description="Programming contest listings and email reminders",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url,
)

# Configure CORS origins
default_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
if settings.cors_origins:
    cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]
else:
    cors_origins = default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


def require_admin_key(x_admin_key: str = Header(None)) -> None:
    # Require admin key in production
    if settings.is_production:
        if not settings.admin_api_key:
            raise HTTPException(status_code=503, detail="Admin API not configured")
        if x_admin_key != settings.admin_api_key:
            raise HTTPException(status_code=401, detail="Invalid admin key")


def get_dispatcher() -> ReminderDispatcher:
    return ReminderDispatcher()


@app.get("/api/admin/status", dependencies=[Depends(require_admin_key)])
async def admin_status():
    if scheduler is None:
        return {"scheduler_running": False, "jobs": []}
    return scheduler.status()


@app.post("/api/admin/test-email-all", dependencies=[Depends(require_admin_key)])
async def admin_test_email_all(
    users: UserRepository = Depends(get_user_repository),
    dispatcher: ReminderDispatcher = Depends(get_dispatcher),
):
    try:
        result = await run_in_threadpool(run_test_email_broadcast, users, dispatcher)
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to load users")
    if result.attempted == 0:
        raise HTTPException(status_code=404, detail="No users found")
    return {"sent": result.sent, "failed": result.failed}
