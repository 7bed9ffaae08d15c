"""
Program Planner - API Dependencies
認証済みユーザーの解決
"""
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.core.security import decode_access_token
from program_planner.db.base import get_async_session
from program_planner.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


async def _resolve_user(
    credentials: Optional[HTTPAuthorizationCredentials],
    session: AsyncSession,
) -> Optional[User]:
    if credentials is None:
        return None

    subject = decode_access_token(credentials.credentials)
    if not subject:
        return None

    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        return None

    return await session.get(User, user_id)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> User:
    """Bearer トークンからユーザーを取得（なければ 401）"""
    user = await _resolve_user(credentials, session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> Optional[User]:
    """トークンがあればユーザーを返す（チャット・共同編集ページ用）"""
    return await _resolve_user(credentials, session)
