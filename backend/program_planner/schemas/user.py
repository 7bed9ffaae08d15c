"""
Program Planner - User Schemas
ユーザー関連のスキーマ
"""
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from program_planner.models.user import UserRole


class LoginRequest(BaseModel):
    """
    ログインリクエストスキーマ

    必須項目の欠落はエンドポイント側で 400 として扱うため、ここでは任意にしている。
    """

    vanderbilt_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[UserRole] = None
    department: Optional[str] = None


class UserResponse(BaseModel):
    """ユーザーレスポンススキーマ"""

    id: uuid.UUID
    vanderbilt_id: str
    email: str
    first_name: str
    last_name: str
    role: str
    department: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    """ログインレスポンス（ユーザーとJWT）"""

    user: UserResponse
    token: str
    token_type: str = "bearer"
