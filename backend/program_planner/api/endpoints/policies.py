"""
Program Planner - Policy Endpoints
大学ポリシーの一覧
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.db.base import get_async_session
from program_planner.models.policy import Policy
from program_planner.schemas.policy import PolicyResponse

router = APIRouter()


@router.get("", response_model=List[PolicyResponse])
async def list_policies(
    category: Optional[str] = None,
    session: AsyncSession = Depends(get_async_session),
):
    """
    ポリシー一覧を取得する。

    Query params:
      - category: カテゴリ名で絞り込み
    """
    query = select(Policy)
    if category:
        query = query.where(Policy.category == category)
    query = query.order_by(Policy.category, Policy.title)

    result = await session.execute(query)
    return [PolicyResponse.model_validate(p) for p in result.scalars().all()]
