"""
Program Planner - Communication Endpoints
イベント告知文の生成と一覧
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.api.deps import get_current_user
from program_planner.api.endpoints.events import forbidden, get_event_or_404
from program_planner.core.logger import get_traced_logger
from program_planner.db.base import get_async_session
from program_planner.models.user import User
from program_planner.schemas.communication import CommunicationRequest
from program_planner.schemas.event import GeneratedCommunication
from program_planner.services.collaboration import can_edit, can_view
from program_planner.services.communications import generate_communication

logger = get_traced_logger("Communications")
router = APIRouter()


@router.post(
    "/{event_id}/communications",
    response_model=GeneratedCommunication,
    status_code=status.HTTP_201_CREATED,
)
async def create_communication(
    event_id: uuid.UUID,
    request: CommunicationRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """告知文を生成してイベントに保存する"""
    event = await get_event_or_404(session, event_id)
    if not can_edit(event, str(current_user.id), current_user.email):
        raise forbidden("Not allowed to edit this event")

    try:
        communication = await generate_communication(
            event,
            request,
            generated_by=request.user_name or current_user.full_name,
        )
    except Exception as e:
        logger.error("Communication generation failed", metadata={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate communication",
        )

    await session.commit()
    return GeneratedCommunication.model_validate(communication)


@router.get("/{event_id}/communications", response_model=List[GeneratedCommunication])
async def list_communications(
    event_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    event = await get_event_or_404(session, event_id)
    if not can_view(event, str(current_user.id), current_user.email):
        raise forbidden("Not allowed to view this event")
    return [GeneratedCommunication.model_validate(c) for c in event.generated_communications or []]
