"""
Program Planner - Sharing Endpoints
イベントの公開リンク（読み取り専用）
"""
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.api.deps import get_current_user
from program_planner.api.endpoints.events import forbidden, get_event_or_404
from program_planner.core.config import settings
from program_planner.core.logger import get_traced_logger
from program_planner.core.security import generate_share_token
from program_planner.db.base import get_async_session
from program_planner.models.user import User
from program_planner.schemas.event import PublicEventResponse, ShareResponse
from program_planner.services.collaboration import is_owner
from program_planner.services.events import get_shared_event

logger = get_traced_logger("Sharing")

# /api/events/{id}/share
router = APIRouter()

# 認証不要の公開ビュー（/public と /api/public の両方にマウント）
public_router = APIRouter()


def share_url(share_id: str) -> str:
    return f"{settings.public_app_url.rstrip('/')}/public/events/{share_id}"


@router.post("/{event_id}/share", response_model=ShareResponse)
async def enable_share(
    event_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """共有リンクを発行する（発行済みなら同じ share_id を返す）"""
    event = await get_event_or_404(session, event_id)
    if not is_owner(event, str(current_user.id)):
        raise forbidden("Only the owner can share this event")

    if not event.share_id:
        event.share_id = generate_share_token()
        event.share_created_at = datetime.now(timezone.utc)
    event.share_enabled = True
    await session.commit()

    logger.info("Event shared", metadata={"event_id": str(event.id)})
    return ShareResponse(share_url=share_url(event.share_id), share_id=event.share_id)


@router.delete("/{event_id}/share", status_code=status.HTTP_204_NO_CONTENT)
async def disable_share(
    event_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    event = await get_event_or_404(session, event_id)
    if not is_owner(event, str(current_user.id)):
        raise forbidden("Only the owner can change sharing")

    event.share_enabled = False
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@public_router.get("/events/{share_id}", response_model=PublicEventResponse)
async def read_shared_event(
    share_id: str,
    session: AsyncSession = Depends(get_async_session),
):
    """共有されたイベントの読み取り専用ビュー"""
    event = await get_shared_event(session, share_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Shared event not found",
        )
    return PublicEventResponse.model_validate(event)
