"""
Program Planner - Collaboration Schemas
共同編集・招待・アクティビティのスキーマ
"""
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from program_planner.models.event import CollaboratorPermission
from program_planner.schemas.event import ActivityEntry, EventFields


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


class CollaboratorCreate(BaseModel):
    """POST /events/{id}/collaborators のリクエスト"""
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    permission: CollaboratorPermission = CollaboratorPermission.EDIT

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v) if isinstance(v, str) else v


class CollaborationEnabledResponse(BaseModel):
    collaboration_id: str
    collaboration_url: str


class JoinRequest(BaseModel):
    """POST /collaborate/{cid}/join のリクエスト"""
    user_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class CollaborativeUpdate(EventFields):
    """
    PUT /collaborate/{cid} のリクエスト

    編集内容に加えて、編集者の識別情報（user_id または email）を含む。
    """
    title: Optional[str] = Field(default=None, min_length=1)
    user_id: Optional[str] = None
    email: Optional[str] = None
    user_name: Optional[str] = None


class ActivityLogResponse(BaseModel):
    activity_log: List[ActivityEntry]
