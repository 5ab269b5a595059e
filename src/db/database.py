from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from src.config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    pass


_sync_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None

async_engine = create_async_engine(settings.async_database_url)


def _ensure_sqlite_dir(url: str) -> None:
    """SQLite 檔案資料庫需要先建立資料夾"""
    prefix = "sqlite:///"
    if url.startswith(prefix) and ":memory:" not in url:
        Path(url[len(prefix):]).parent.mkdir(parents=True, exist_ok=True)


def get_sync_engine() -> Engine:
    global _sync_engine
    if _sync_engine is None:
        _ensure_sqlite_dir(settings.sync_database_url)
        _sync_engine = create_engine(settings.sync_database_url)
    return _sync_engine


def get_session_factory() -> sessionmaker:
    """同步 Session 工廠（給排程與 CLI 使用）"""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_sync_engine(), expire_on_commit=False)
    return _session_factory


def create_tables() -> None:
    import src.models  # noqa: F401  register mappers

    Base.metadata.create_all(get_sync_engine())
    logger.info("Database tables created")


async def init_db() -> None:
    import src.models  # noqa: F401

    _ensure_sqlite_dir(settings.sync_database_url)
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")

