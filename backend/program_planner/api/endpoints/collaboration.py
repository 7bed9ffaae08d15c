"""
Program Planner - Collaboration Endpoints
共同編集の有効化・招待・参加・共同編集による更新

クライアントはポーリングで変更を取得する（プッシュ配信はしない）。
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.api.deps import get_current_user, get_current_user_optional
from program_planner.api.endpoints.events import forbidden, get_event_or_404
from program_planner.core.config import settings
from program_planner.core.logger import get_traced_logger
from program_planner.db.base import get_async_session
from program_planner.models.event import Event
from program_planner.models.user import User
from program_planner.schemas.collaboration import (
    ActivityLogResponse,
    CollaborationEnabledResponse,
    CollaborativeUpdate,
    CollaboratorCreate,
    JoinRequest,
)
from program_planner.schemas.event import Collaborator, CollaborativeEventResponse
from program_planner.services import collaboration as collab
from program_planner.services.events import apply_event_fields, get_collaborative_event

logger = get_traced_logger("Collaboration")

# /api/events/{id}/...（所有者・admin 向けの管理操作）
router = APIRouter()

# /api/collaborate/{collaboration_id}/...（共同編集ページ）
collaborate_router = APIRouter()

IDENTITY_FIELDS = {"user_id", "email", "user_name"}


def collaboration_url(collaboration_id: str) -> str:
    return f"{settings.public_app_url.rstrip('/')}/collaborate/{collaboration_id}"


def _require_manager(event: Event, user: User) -> None:
    if not collab.can_manage(event, str(user.id), user.email):
        raise forbidden("Only the owner or an admin collaborator can manage collaboration")


async def _get_collaborative_event_or_404(session: AsyncSession, collaboration_id: str) -> Event:
    event = await get_collaborative_event(session, collaboration_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Collaborative event not found",
        )
    return event


# ────────────────────────────────────────
# 管理操作
# ────────────────────────────────────────

@router.post(
    "/{event_id}/collaboration/enable",
    response_model=CollaborationEnabledResponse,
)
async def enable_collaboration(
    event_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    event = await get_event_or_404(session, event_id)
    _require_manager(event, current_user)

    collaboration_id = collab.enable_collaboration(event)
    await session.commit()

    logger.info("Collaboration enabled", metadata={"event_id": str(event.id)})
    return CollaborationEnabledResponse(
        collaboration_id=collaboration_id,
        collaboration_url=collaboration_url(collaboration_id),
    )


@router.post("/{event_id}/collaboration/disable", status_code=status.HTTP_204_NO_CONTENT)
async def disable_collaboration(
    event_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    event = await get_event_or_404(session, event_id)
    _require_manager(event, current_user)

    collab.disable_collaboration(event)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{event_id}/collaborators",
    response_model=Collaborator,
    status_code=status.HTTP_201_CREATED,
)
async def add_collaborator(
    event_id: uuid.UUID,
    request: CollaboratorCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """共同編集者を招待する（同じメールアドレスは 409）"""
    event = await get_event_or_404(session, event_id)
    _require_manager(event, current_user)

    try:
        collaborator = collab.add_collaborator(
            event,
            request,
            added_by=str(current_user.id),
            added_by_name=current_user.full_name,
        )
    except collab.DuplicateCollaboratorError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User is already a collaborator",
        )

    await session.commit()
    return Collaborator.model_validate(collaborator)


@router.delete(
    "/{event_id}/collaborators/{collaborator_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_collaborator(
    event_id: uuid.UUID,
    collaborator_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    event = await get_event_or_404(session, event_id)
    _require_manager(event, current_user)

    try:
        collab.remove_collaborator(
            event,
            collaborator_id,
            removed_by=str(current_user.id),
            removed_by_name=current_user.full_name,
        )
    except collab.CollaboratorNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Collaborator not found",
        )

    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ────────────────────────────────────────
# 共同編集ページ
# ────────────────────────────────────────

def _token_identity(request: BaseModel, current_user: Optional[User]) -> BaseModel:
    """
    編集者の識別情報を決める。

    トークンがあればトークンのユーザーで上書きする。トークンがない場合、
    本文の user_id は名乗りにすぎないので使わず、メールアドレスだけで識別する。
    """
    if current_user is None:
        return request.model_copy(update={"user_id": None})

    update = {"user_id": str(current_user.id), "email": current_user.email}
    profile = {
        "first_name": current_user.first_name,
        "last_name": current_user.last_name,
        "user_name": current_user.full_name,
    }
    for field, value in profile.items():
        if field in type(request).model_fields:
            update[field] = getattr(request, field) or value
    return request.model_copy(update=update)


@collaborate_router.get("/{collaboration_id}", response_model=CollaborativeEventResponse)
async def read_collaborative_event(
    collaboration_id: str,
    session: AsyncSession = Depends(get_async_session),
):
    event = await _get_collaborative_event_or_404(session, collaboration_id)
    return CollaborativeEventResponse.model_validate(event)


@collaborate_router.get("/{collaboration_id}/activity", response_model=ActivityLogResponse)
async def read_activity(
    collaboration_id: str,
    session: AsyncSession = Depends(get_async_session),
):
    """アクティビティログ（新しい順）"""
    event = await _get_collaborative_event_or_404(session, collaboration_id)
    return ActivityLogResponse(activity_log=collab.activity_newest_first(event))


@collaborate_router.post("/{collaboration_id}/join", response_model=CollaborativeEventResponse)
async def join(
    collaboration_id: str,
    request: JoinRequest,
    current_user: Optional[User] = Depends(get_current_user_optional),
    session: AsyncSession = Depends(get_async_session),
):
    """招待されたユーザーとして参加する（所有者は常に参加可）"""
    event = await _get_collaborative_event_or_404(session, collaboration_id)

    request = _token_identity(request, current_user)

    try:
        joined = collab.join_collaboration(event, request)
    except collab.NotInvitedError:
        raise forbidden("Only invited collaborators can join")

    if joined is not None:
        await session.commit()
    return CollaborativeEventResponse.model_validate(event)


@collaborate_router.put("/{collaboration_id}", response_model=CollaborativeEventResponse)
async def update_collaborative_event(
    collaboration_id: str,
    request: CollaborativeUpdate,
    current_user: Optional[User] = Depends(get_current_user_optional),
    session: AsyncSession = Depends(get_async_session),
):
    """
    共同編集者としてイベントを更新する。

    トークンのユーザー、またはメールアドレスで編集者を識別する（どちらもなければ 400）。
    チェック状態の切り替えは completed_task / uncompleted_task として記録する。
    """
    event = await _get_collaborative_event_or_404(session, collaboration_id)

    request = _token_identity(request, current_user)

    if not request.user_id and not request.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User identification required",
        )

    if not collab.can_edit(event, request.user_id, request.email):
        raise forbidden("You do not have permission to edit this event")

    previous_checklist = list(event.checklist or [])
    changed = apply_event_fields(event, request, exclude=IDENTITY_FIELDS)
    collab.touch_collaborator(event, request.user_id, request.email)
    if changed:
        collab.record_collaborative_changes(event, request, previous_checklist, changed)

    await session.commit()

    logger.info(
        "Collaborative update",
        metadata={"event_id": str(event.id), "fields": changed},
    )
    return CollaborativeEventResponse.model_validate(event)
