"""
Program Planner - ProgramPlan Schemas
"""
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from program_planner.models.program_plan import (
    LocationType,
    PlanStatus,
    Priority,
    ProgramType,
)
from program_planner.schemas.common import UTCDatetime


class PlanLocation(BaseModel):
    type: LocationType
    venue: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)


class Budget(BaseModel):
    amount: Optional[float] = None
    currency: str = "USD"


class Deadline(BaseModel):
    task: Optional[str] = None
    due_date: Optional[UTCDatetime] = None
    completed: bool = False


class PlanTimeline(BaseModel):
    event_date: Optional[UTCDatetime] = None
    planning_start_date: Optional[UTCDatetime] = None
    deadlines: List[Deadline] = Field(default_factory=list)


class PlanChecklistItem(BaseModel):
    category: Optional[str] = None
    task: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[UTCDatetime] = None
    priority: Optional[Priority] = None
    completed: bool = False
    policy_reference: Optional[str] = None


class ConversationTurn(BaseModel):
    role: str = Field(..., pattern="^(user|assistant)$")
    content: str
    timestamp: Optional[UTCDatetime] = None


class PlanCreate(BaseModel):
    """POST /plans のリクエスト"""
    title: str = Field(..., min_length=1)
    program_type: ProgramType
    location: PlanLocation
    has_alcohol: bool = False
    expected_attendance: Optional[int] = Field(default=None, ge=0)
    budget: Budget = Field(default_factory=Budget)
    timeline: PlanTimeline = Field(default_factory=PlanTimeline)
    checklist: List[PlanChecklistItem] = Field(default_factory=list)
    status: PlanStatus = PlanStatus.PLANNING


class PlanUpdate(BaseModel):
    """PUT /plans/{id} のリクエスト（送られた項目のみ更新）"""
    title: Optional[str] = Field(default=None, min_length=1)
    program_type: Optional[ProgramType] = None
    location: Optional[PlanLocation] = None
    has_alcohol: Optional[bool] = None
    expected_attendance: Optional[int] = Field(default=None, ge=0)
    budget: Optional[Budget] = None
    timeline: Optional[PlanTimeline] = None
    checklist: Optional[List[PlanChecklistItem]] = None
    status: Optional[PlanStatus] = None


class PlanResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    program_type: str
    location: PlanLocation
    has_alcohol: bool
    expected_attendance: Optional[int] = None
    budget: Budget
    timeline: PlanTimeline
    checklist: List[PlanChecklistItem]
    conversation_history: List[ConversationTurn]
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
