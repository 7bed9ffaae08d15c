"""
Program Planner - Plan Endpoints
企画プランの CRUD
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.api.deps import get_current_user
from program_planner.core.logger import get_traced_logger
from program_planner.db.base import get_async_session
from program_planner.models.program_plan import ProgramPlan
from program_planner.models.user import User
from program_planner.schemas.plan import PlanCreate, PlanResponse, PlanUpdate

logger = get_traced_logger("Plans")
router = APIRouter()


async def _get_owned_plan(
    plan_id: uuid.UUID,
    current_user: User,
    session: AsyncSession,
) -> ProgramPlan:
    plan = await session.get(ProgramPlan, plan_id)
    if plan is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Plan not found",
        )
    if plan.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access this plan",
        )
    return plan


@router.get("", response_model=List[PlanResponse])
async def list_plans(
    user_id: Optional[uuid.UUID] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """現在のユーザーのプラン一覧（新しい順）"""
    if user_id is not None and user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot list plans of another user",
        )

    result = await session.execute(
        select(ProgramPlan)
        .where(ProgramPlan.user_id == current_user.id)
        .order_by(ProgramPlan.created_at.desc())
    )
    return [PlanResponse.model_validate(p) for p in result.scalars().all()]


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    request: PlanCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    data = request.model_dump(mode="json")
    plan = ProgramPlan(
        user_id=current_user.id,
        conversation_history=[],
        **data,
    )
    session.add(plan)
    await session.commit()
    await session.refresh(plan)

    logger.info("Plan created", metadata={"plan_id": str(plan.id)})
    return PlanResponse.model_validate(plan)


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_plan(
    plan_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    plan = await _get_owned_plan(plan_id, current_user, session)
    return PlanResponse.model_validate(plan)


@router.put("/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: uuid.UUID,
    request: PlanUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    """送られた項目のみ更新（チェックリストの切り替え等）"""
    plan = await _get_owned_plan(plan_id, current_user, session)

    for name, value in request.model_dump(exclude_unset=True, mode="json").items():
        if value is None:
            continue
        setattr(plan, name, value)

    await session.commit()
    await session.refresh(plan)
    return PlanResponse.model_validate(plan)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(
    plan_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
):
    plan = await _get_owned_plan(plan_id, current_user, session)
    await session.delete(plan)
    await session.commit()

    logger.info("Plan deleted", metadata={"plan_id": str(plan_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
