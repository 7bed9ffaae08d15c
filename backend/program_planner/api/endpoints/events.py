"""
Program Planner - Event Endpoints
チャットから保存したイベントの CRUD
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from program_planner.api.deps import get_current_user
from program_planner.core.logger import get_traced_logger
from program_planner.db.base import get_async_session
from program_planner.models.event import Event
from program_planner.models.user import User
from program_planner.schemas.event import EventCreate, EventResponse, EventUpdate
from program_planner.services.collaboration import can_edit, can_view, is_owner
from program_planner.services.events import apply_event_fields, build_event, get_event

logger = get_traced_logger("Events")
router = APIRouter()


async def get_event_or_404(session: AsyncSession, event_id: uuid.UUID) -> Event:
    event = await get_event(session, event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


def forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


@router.get("", response_model=List[EventResponse])
async def list_events(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """自分のイベント一覧（新しい順、プラン名付き）"""
    result = await session.execute(
        select(Event)
        .options(selectinload(Event.plan))
        .where(Event.user_id == current_user.id)
        .order_by(Event.created_at.desc())
    )
    return [EventResponse.from_event(e) for e in result.scalars().all()]


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: EventCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    event = build_event(request, current_user)
    session.add(event)
    await session.commit()

    logger.info("Event created", metadata={"event_id": str(event.id)})
    return EventResponse.from_event(event)


@router.get("/{event_id}", response_model=EventResponse)
async def read_event(
    event_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    event = await get_event_or_404(session, event_id)
    if not can_view(event, str(current_user.id), current_user.email):
        raise forbidden("Not allowed to view this event")
    return EventResponse.from_event(event)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: uuid.UUID,
    request: EventUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """
    イベントを更新する（所有者、または edit/admin 権限の共同編集者）。

    checklist は件数が同じなら置き換え、違えば新規項目のみ追加する。
    """
    event = await get_event_or_404(session, event_id)
    if not can_edit(event, str(current_user.id), current_user.email):
        raise forbidden("Not allowed to edit this event")

    changed = apply_event_fields(event, request)
    if changed:
        await session.commit()
        logger.info("Event updated", metadata={"event_id": str(event.id), "fields": changed})

    return EventResponse.from_event(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    event = await get_event_or_404(session, event_id)
    if not is_owner(event, str(current_user.id)):
        raise forbidden("Only the owner can delete this event")

    await session.delete(event)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
