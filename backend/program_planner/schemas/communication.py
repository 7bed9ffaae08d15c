"""
Program Planner - Communication Schemas
イベント告知文の生成リクエスト
"""
import enum
from typing import Optional

from pydantic import BaseModel, Field


class CommunicationType(str, enum.Enum):
    EMAIL = "email"
    FLYER = "flyer"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    NEWSLETTER = "newsletter"
    ANNOUNCEMENT = "announcement"


class CommunicationRequest(BaseModel):
    """POST /events/{id}/communications のリクエスト"""
    communication_type: CommunicationType
    tone: str = Field(default="professional", min_length=1, max_length=50)
    custom_instructions: Optional[str] = Field(default=None, max_length=1000)
    user_name: Optional[str] = None
