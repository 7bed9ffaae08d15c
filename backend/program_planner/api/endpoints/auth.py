"""
Program Planner - Authentication Endpoints
大学IDによるログイン（初回ログイン時にユーザーを作成）
"""
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.api.deps import get_current_user
from program_planner.core.config import settings
from program_planner.core.logger import get_traced_logger
from program_planner.core.security import create_access_token
from program_planner.db.base import get_async_session
from program_planner.models.user import User, UserRole
from program_planner.schemas.user import LoginRequest, LoginResponse, UserResponse

logger = get_traced_logger("Auth")
router = APIRouter()

REQUIRED_LOGIN_FIELDS = ("vanderbilt_id", "email", "first_name", "last_name")


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    session: AsyncSession = Depends(get_async_session),
):
    """
    ログイン

    vanderbilt_id でユーザーを検索し、存在しなければ作成する。
    """
    values = {
        name: (getattr(credentials, name) or "").strip()
        for name in REQUIRED_LOGIN_FIELDS
    }
    if not all(values.values()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields",
        )

    result = await session.execute(
        select(User).where(User.vanderbilt_id == values["vanderbilt_id"])
    )
    user = result.scalar_one_or_none()

    if user is None:
        user = User(
            vanderbilt_id=values["vanderbilt_id"],
            email=values["email"].lower(),
            first_name=values["first_name"],
            last_name=values["last_name"],
            role=(credentials.role or UserRole.STUDENT).value,
            department=credentials.department,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        logger.info("User created on first login", metadata={"user_id": str(user.id)})

    # トークン生成
    token = create_access_token(
        subject=str(user.id),
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )

    return LoginResponse(
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """現在のユーザー情報を取得"""
    return UserResponse.model_validate(current_user)
