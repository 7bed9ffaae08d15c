"""
Program Planner - Chat Schemas
アシスタントとの対話・イベント更新生成のスキーマ
"""
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    """直前の会話ターン"""
    role: str = Field(..., pattern="^(user|assistant|system)$")
    content: str


class ChatRequest(BaseModel):
    """POST /chat のリクエスト（message の空チェックはエンドポイントで 400）"""
    message: Optional[str] = None
    plan_id: Optional[uuid.UUID] = None
    context: List[ChatTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str


class EventUpdateRequest(BaseModel):
    """POST /chat/generate-event-update のリクエスト"""
    conversation: Optional[str] = None
    existing_event: Optional[Dict[str, Any]] = None
    instructions: Optional[str] = None


class EventUpdateResponse(BaseModel):
    event_data: Dict[str, Any]
