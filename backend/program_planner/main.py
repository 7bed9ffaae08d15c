"""
Program Planner - FastAPI Application
メインアプリケーションエントリーポイント
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

from program_planner.core.config import settings
from program_planner.core.trace_context import generate_trace_id
from program_planner.core.logger import configure_logging, get_traced_logger
from program_planner.api.router import api_router
from program_planner.api.endpoints.sharing import public_router
from program_planner.db.base import Base, check_database_connection, engine

# ロギング設定
configure_logging(settings.log_level)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションのライフサイクル管理"""
    logger.info("Starting Program Planner", version=settings.app_version)

    # データベーステーブルの作成（開発用）
    if settings.environment == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    yield

    await engine.dispose()
    logger.info("Shutting down Program Planner")


# FastAPIアプリケーション
app = FastAPI(
    title=settings.app_name,
    description="""
    Program Planner: キャンパス企画の計画支援

    大学のポリシーに沿って、チャットで企画を相談し、
    チェックリスト・共有・共同編集・リマインダーで準備を進める
    """,
    version=settings.app_version,
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc",
    lifespan=lifespan,
)

# --- Trace ID Middleware ---
_request_logger = get_traced_logger("Main")


class TraceIDMiddleware(BaseHTTPMiddleware):
    """リクエストごとに trace_id を生成し、レスポンスヘッダーに付与する"""

    async def dispatch(self, request: Request, call_next):
        trace_id = generate_trace_id(request.headers.get("X-Trace-ID"))
        start = time.monotonic()

        _request_logger.info(
            "Request received",
            metadata={
                "method": request.method,
                "path": request.url.path,
            },
        )

        response: Response = await call_next(request)

        duration_ms = round((time.monotonic() - start) * 1000, 1)
        response.headers["X-Trace-ID"] = trace_id

        _request_logger.info(
            "Response sent",
            metadata={
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response


# CORS設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Trace ID Middleware（CORSより内側に配置）
app.add_middleware(TraceIDMiddleware)

# APIルーターの登録
app.include_router(api_router, prefix=settings.api_prefix)

# 共有リンクはフロントエンドから API プレフィックスなしでも参照される
app.include_router(public_router, prefix="/public", tags=["共有"])


@app.get("/")
async def root():
    """ルートエンドポイント"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": f"{settings.api_prefix}/docs",
    }


@app.get("/healthz")
async def health_check():
    """ヘルスチェックエンドポイント"""
    database_ok = await check_database_connection()
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if database_ok else "disconnected",
        "amplify": "enabled" if settings.use_amplify else "disabled",
    }
