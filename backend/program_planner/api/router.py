"""
Program Planner - API Router
すべてのエンドポイントを統合
"""
from fastapi import APIRouter

from program_planner.api.endpoints import (
    auth,
    chat,
    collaboration,
    communications,
    events,
    notifications,
    plans,
    policies,
    sharing,
)

api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["認証"],
)

api_router.include_router(
    plans.router,
    prefix="/plans",
    tags=["企画プラン"],
)

api_router.include_router(
    policies.router,
    prefix="/policies",
    tags=["ポリシー"],
)

api_router.include_router(
    chat.router,
    prefix="/chat",
    tags=["チャット"],
)

api_router.include_router(
    events.router,
    prefix="/events",
    tags=["イベント"],
)

api_router.include_router(
    sharing.router,
    prefix="/events",
    tags=["共有"],
)

api_router.include_router(
    collaboration.router,
    prefix="/events",
    tags=["共同編集"],
)

api_router.include_router(
    communications.router,
    prefix="/events",
    tags=["告知文"],
)

api_router.include_router(
    collaboration.collaborate_router,
    prefix="/collaborate",
    tags=["共同編集"],
)

api_router.include_router(
    sharing.public_router,
    prefix="/public",
    tags=["共有"],
)

api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["通知"],
)
