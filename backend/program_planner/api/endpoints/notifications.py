"""
Program Planner - Notification Endpoints
リマインダーメールの配信停止リンク（プレーンテキスト応答）
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.core.logger import get_traced_logger
from program_planner.core.security import verify_unsubscribe
from program_planner.db.base import get_async_session
from program_planner.models.event import Event

logger = get_traced_logger("Notifications")
router = APIRouter()


@router.get("/unsubscribe", response_class=PlainTextResponse)
async def unsubscribe(
    uid: Optional[str] = None,
    eid: Optional[str] = None,
    sig: Optional[str] = None,
    session: AsyncSession = Depends(get_async_session),
):
    """
    署名付きリンクからイベントのメール通知を停止する。

    署名は HMAC-SHA256("<uid>|<eid>")。イベントの所有者と uid が一致する必要がある。
    """
    if not uid or not eid or not sig:
        return PlainTextResponse("Invalid unsubscribe link.", status_code=400)

    if not verify_unsubscribe(uid, eid, sig):
        return PlainTextResponse("Invalid or expired unsubscribe signature.", status_code=400)

    try:
        event_id = uuid.UUID(eid)
    except ValueError:
        return PlainTextResponse("Event not found.", status_code=404)

    event = await session.get(Event, event_id)
    if event is None or str(event.user_id) != uid:
        return PlainTextResponse("Event not found.", status_code=404)

    event.notifications = {**(event.notifications or {}), "email_opt_in": False}
    await session.commit()

    logger.info("Email notifications disabled", metadata={"event_id": eid})
    return PlainTextResponse("You have been unsubscribed from email notifications for this event.")
