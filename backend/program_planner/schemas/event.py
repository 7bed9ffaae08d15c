"""
Program Planner - Event Schemas
保存イベント・チェックリスト・共有ビューのスキーマ
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm.base import NO_VALUE

from program_planner.models.event import (
    DEFAULT_REMINDER_DAYS,
    MAX_REMINDER_DAYS,
    MIN_REMINDER_DAYS,
    ActivityAction,
    CollaboratorPermission,
    Event,
    EventCategory,
    EventStatus,
    EventType,
)
from program_planner.models.program_plan import LocationType, Priority
from program_planner.schemas.common import UTCDatetime


def new_item_id() -> str:
    return uuid.uuid4().hex


# ────────────────────────────────────────
# 埋め込みドキュメント
# ────────────────────────────────────────

class EventLocation(BaseModel):
    type: Optional[LocationType] = None
    venue: Optional[str] = None
    address: Optional[str] = None
    room: Optional[str] = None


class EventBudget(BaseModel):
    amount: Optional[float] = None
    currency: str = "USD"


class ChecklistItem(BaseModel):
    id: str = Field(default_factory=new_item_id)
    task: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: Optional[UTCDatetime] = None
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    completed_at: Optional[UTCDatetime] = None
    estimated_hours: Optional[float] = None
    category: Optional[str] = None
    dependencies: List[str] = Field(default_factory=list)
    is_time_header: bool = False
    time_period: Optional[str] = None
    timing_type: str = Field(default="recommended", pattern="^(required|recommended)$")


class TimelineMilestone(BaseModel):
    milestone: str = Field(..., min_length=1)
    due_date: Optional[UTCDatetime] = None
    completed: bool = False
    completed_at: Optional[UTCDatetime] = None
    description: Optional[str] = None
    associated_tasks: List[str] = Field(default_factory=list)


class SourceMessage(BaseModel):
    content: Optional[str] = None
    timestamp: Optional[UTCDatetime] = None
    conversation_context: List[str] = Field(default_factory=list)


class NotificationSettings(BaseModel):
    email_opt_in: bool = True
    reminder_days: int = Field(
        default=DEFAULT_REMINDER_DAYS,
        ge=MIN_REMINDER_DAYS,
        le=MAX_REMINDER_DAYS,
    )


class Collaborator(BaseModel):
    id: str = Field(default_factory=new_item_id)
    user_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    permission: CollaboratorPermission = CollaboratorPermission.EDIT
    added_at: Optional[UTCDatetime] = None
    added_by: Optional[str] = None
    last_active: Optional[UTCDatetime] = None


class ActivityEntry(BaseModel):
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    action: ActivityAction
    description: Optional[str] = None
    timestamp: Optional[UTCDatetime] = None
    metadata: Optional[Dict[str, Any]] = None


class GeneratedCommunication(BaseModel):
    communication_type: str
    tone: str
    content: str
    character_count: Optional[int] = None
    character_limit: Optional[int] = None
    within_limit: Optional[bool] = None
    custom_instructions: Optional[str] = None
    generated_at: Optional[UTCDatetime] = None
    generated_by: Optional[str] = None


# ────────────────────────────────────────
# API リクエストスキーマ
# ────────────────────────────────────────

class EventFields(BaseModel):
    """作成・更新で共通する編集可能フィールド"""
    description: Optional[str] = None
    event_date: Optional[UTCDatetime] = None
    category: Optional[EventCategory] = None
    priority: Optional[Priority] = None
    status: Optional[EventStatus] = None
    expected_attendance: Optional[int] = Field(default=None, ge=0)
    location: Optional[EventLocation] = None
    budget: Optional[EventBudget] = None
    has_alcohol: Optional[bool] = None
    requires_av: Optional[bool] = None
    catering_required: Optional[bool] = None
    potentially_controversial: Optional[bool] = None
    event_type: Optional[EventType] = None
    checklist: Optional[List[ChecklistItem]] = None
    timeline: Optional[List[TimelineMilestone]] = None
    notes: Optional[str] = None
    notifications: Optional[NotificationSettings] = None


class EventCreate(EventFields):
    """POST /events のリクエスト"""
    title: str = Field(..., min_length=1)
    plan_id: Optional[uuid.UUID] = None
    source_message: Optional[SourceMessage] = None


class EventUpdate(EventFields):
    """PUT /events/{id} のリクエスト（送られた項目のみ更新）"""
    title: Optional[str] = Field(default=None, min_length=1)


# ────────────────────────────────────────
# API レスポンススキーマ
# ────────────────────────────────────────

class EventResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    owner_id: Optional[uuid.UUID] = None
    plan_id: Optional[uuid.UUID] = None
    plan_title: Optional[str] = None
    title: str
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    category: str
    priority: str
    status: str
    expected_attendance: Optional[int] = None
    location: EventLocation
    budget: EventBudget
    has_alcohol: bool
    requires_av: bool
    catering_required: bool
    potentially_controversial: bool
    event_type: str
    checklist: List[ChecklistItem]
    timeline: List[TimelineMilestone]
    source_message: Optional[SourceMessage] = None
    notes: Optional[str] = None
    notifications: NotificationSettings
    share_enabled: bool
    share_id: Optional[str] = None
    collaboration_enabled: bool
    collaboration_id: Optional[str] = None
    collaborators: List[Collaborator]
    generated_communications: List[GeneratedCommunication]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        response = cls.model_validate(event)
        response.plan_title = loaded_plan_title(event)
        return response


class PublicEventResponse(BaseModel):
    """
    共有リンク用の読み取り専用ビュー

    所有者・共同編集者・アクティビティ・共有設定は含めない。
    """
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    category: str
    priority: str
    status: str
    expected_attendance: Optional[int] = None
    location: EventLocation
    event_type: str
    checklist: List[ChecklistItem]
    timeline: List[TimelineMilestone]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CollaboratorSummary(BaseModel):
    """共同編集ページに表示する共同編集者（メールアドレス・user_id は出さない）"""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    permission: CollaboratorPermission
    last_active: Optional[UTCDatetime] = None

    model_config = {"from_attributes": True}


class CollaborativeEventResponse(BaseModel):
    """
    共同編集ページ用のビュー

    リンクを知っていれば誰でも読めるため、所有者の ID と
    共同編集者のメールアドレスは含めない。
    """
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    category: str
    priority: str
    status: str
    expected_attendance: Optional[int] = None
    location: EventLocation
    budget: EventBudget
    has_alcohol: bool
    requires_av: bool
    catering_required: bool
    potentially_controversial: bool
    event_type: str
    checklist: List[ChecklistItem]
    timeline: List[TimelineMilestone]
    notes: Optional[str] = None
    collaboration_id: Optional[str] = None
    collaborators: List[CollaboratorSummary]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ShareResponse(BaseModel):
    share_url: str
    share_id: str


def loaded_plan_title(event: Event) -> Optional[str]:
    """読み込み済みの plan リレーションからタイトルを取得（遅延ロードはしない）"""
    loaded = sa_inspect(event).attrs.plan.loaded_value
    if loaded is NO_VALUE or loaded is None:
        return None
    return loaded.title
