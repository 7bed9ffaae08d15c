"""
Program Planner - Chat Endpoints
企画アシスタントとの対話と、会話からのイベント更新生成
"""
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.api.deps import get_current_user_optional
from program_planner.core.logger import get_traced_logger
from program_planner.db.base import get_async_session
from program_planner.models.policy import Policy
from program_planner.models.program_plan import ProgramPlan
from program_planner.models.user import User
from program_planner.schemas.chat import (
    ChatRequest,
    ChatResponse,
    EventUpdateRequest,
    EventUpdateResponse,
)
from program_planner.services.assistant import TECHNICAL_DIFFICULTIES_REPLY, planning_assistant
from program_planner.services.event_updates import generate_event_update
from program_planner.services.policy_context import build_policy_context

logger = get_traced_logger("Chat")
router = APIRouter()


async def _load_plan(
    session: AsyncSession,
    request: ChatRequest,
    current_user: Optional[User],
) -> Optional[ProgramPlan]:
    """自分のプランだけを文脈・履歴の保存先にする（それ以外の plan_id は無視）"""
    if request.plan_id is None or current_user is None:
        return None
    try:
        plan = await session.get(ProgramPlan, request.plan_id)
    except SQLAlchemyError as e:
        logger.warning("Could not load plan for chat context", metadata={"error": str(e)})
        return None
    if plan is not None and plan.user_id != current_user.id:
        logger.warning(
            "Ignoring plan owned by another user",
            metadata={"plan_id": str(request.plan_id)},
        )
        return None
    return plan


async def _load_policies(session: AsyncSession) -> list:
    try:
        result = await session.execute(select(Policy))
        return list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.warning("Could not load policies for chat context", metadata={"error": str(e)})
        return []


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    current_user: Optional[User] = Depends(get_current_user_optional),
    session: AsyncSession = Depends(get_async_session),
):
    """
    アシスタントに質問する。

    関連ポリシーをシステムメッセージとして添える。自分のプランの plan_id が指定されていれば
    ユーザー発話とアシスタント返信をプランの会話履歴に追記する。
    """
    message = (request.message or "").strip()
    if not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message is required",
        )

    plan = await _load_plan(session, request, current_user)
    policies = await _load_policies(session)
    policy_context = build_policy_context(policies, message, plan=plan, user=current_user)

    try:
        reply = await planning_assistant.chat(
            message,
            context=[turn.model_dump() for turn in request.context],
            policy_context=policy_context,
        )
    except Exception as e:
        logger.error("Assistant call failed", metadata={"error": str(e)})
        reply = TECHNICAL_DIFFICULTIES_REPLY

    if plan is not None:
        now = datetime.now(timezone.utc).isoformat()
        plan.conversation_history = list(plan.conversation_history or []) + [
            {"role": "user", "content": message, "timestamp": now},
            {"role": "assistant", "content": reply, "timestamp": now},
        ]
        try:
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.warning("Could not save conversation history", metadata={"error": str(e)})

    return ChatResponse(response=reply)


@router.post("/generate-event-update", response_model=EventUpdateResponse)
async def generate_update(request: EventUpdateRequest):
    """会話から既存イベントへの変更点を抽出する"""
    if not request.conversation or not request.existing_event:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Conversation and existing event are required",
        )

    try:
        event_data = await generate_event_update(
            request.conversation,
            request.existing_event,
            request.instructions,
        )
    except Exception as e:
        logger.error("Event update generation failed", metadata={"error": str(e)})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Failed to generate event update",
                "event_data": {"description": "", "checklist": []},
            },
        )

    return EventUpdateResponse(event_data=event_data)
