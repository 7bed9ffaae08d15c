"""
Program Planner - Pydantic Schemas
APIリクエスト・レスポンスのスキーマ定義
"""
from program_planner.schemas.user import LoginRequest, LoginResponse, UserResponse
from program_planner.schemas.plan import PlanCreate, PlanUpdate, PlanResponse
from program_planner.schemas.policy import PolicyCreate, PolicyResponse
from program_planner.schemas.event import (
    ChecklistItem,
    EventCreate,
    EventUpdate,
    EventResponse,
    PublicEventResponse,
    ShareResponse,
)
from program_planner.schemas.chat import (
    ChatRequest,
    ChatResponse,
    EventUpdateRequest,
    EventUpdateResponse,
)
from program_planner.schemas.collaboration import (
    CollaboratorCreate,
    CollaborationEnabledResponse,
    JoinRequest,
    CollaborativeUpdate,
    ActivityLogResponse,
)
from program_planner.schemas.communication import CommunicationRequest, CommunicationType

__all__ = [
    # User
    "LoginRequest",
    "LoginResponse",
    "UserResponse",
    # Plan
    "PlanCreate",
    "PlanUpdate",
    "PlanResponse",
    # Policy
    "PolicyCreate",
    "PolicyResponse",
    # Event
    "ChecklistItem",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "PublicEventResponse",
    "ShareResponse",
    # Chat
    "ChatRequest",
    "ChatResponse",
    "EventUpdateRequest",
    "EventUpdateResponse",
    # Collaboration
    "CollaboratorCreate",
    "CollaborationEnabledResponse",
    "JoinRequest",
    "CollaborativeUpdate",
    "ActivityLogResponse",
    # Communication
    "CommunicationRequest",
    "CommunicationType",
]
