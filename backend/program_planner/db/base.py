"""
Program Planner - Database Base
PostgreSQL（asyncpg）への非同期接続とモデル基底クラス
"""
import logging
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import MetaData, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from program_planner.core.config import settings

logger = logging.getLogger(__name__)

# Alembic の autogenerate と制約名を揃えるための命名規則
metadata = MetaData(naming_convention={
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
})


class Base(DeclarativeBase):
    """
    すべてのモデルの基底クラス

    埋め込みドキュメント（場所・予算・チェックリスト等）は JSONB 列に保存する。
    JSONB 列はインプレース変更を検知しないため、更新時は新しい値を代入すること。
    """

    metadata = metadata


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """リクエスト単位のセッション（FastAPI の依存関係）"""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """/healthz 用。接続できなければ False"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database health check failed: %s", e)
        return False
    return True


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
