"""
Program Planner - Policy Schemas
ポリシーの入力（正規化付き）とレスポンス
"""
import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from program_planner.models.policy import RoleVisibility, Severity


class PolicyTimeline(BaseModel):
    """必要な事前申請日数（日）"""
    min_advance_notice: Optional[int] = Field(default=None, ge=0)
    recommended_advance_notice: Optional[int] = Field(default=None, ge=0)


class PolicyCreate(BaseModel):
    """
    ポリシー登録スキーマ

    旧形式の入力も受け付ける:
      - applicable_roles: ["student", "staff"] → role_visibility に変換（保存はしない）
      - severity: "high" → "warning"
    """
    category: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    requirements: List[str] = Field(default_factory=list)
    citations: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    timeline: PolicyTimeline = Field(default_factory=PolicyTimeline)
    role_visibility: RoleVisibility = RoleVisibility.BOTH
    applicable_roles: Optional[List[str]] = Field(default=None, exclude=True)
    program_types: List[str] = Field(default_factory=list)
    severity: Severity = Severity.INFO

    @field_validator("category", "title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("severity", mode="before")
    @classmethod
    def tolerate_high_severity(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().lower() == "high":
            return Severity.WARNING.value
        return v

    @model_validator(mode="after")
    def normalize_roles(self) -> "PolicyCreate":
        if self.applicable_roles:
            roles = {str(r).lower() for r in self.applicable_roles}
            if "student" in roles and "staff" in roles:
                self.role_visibility = RoleVisibility.BOTH
            elif "student" in roles:
                self.role_visibility = RoleVisibility.STUDENT
            elif "staff" in roles:
                self.role_visibility = RoleVisibility.STAFF
            elif "both" in roles:
                self.role_visibility = RoleVisibility.BOTH
        return self


class PolicyResponse(BaseModel):
    """ポリシーレスポンス"""
    id: uuid.UUID
    category: str
    title: str
    description: str
    requirements: List[str]
    citations: List[str]
    tags: List[str]
    timeline: PolicyTimeline
    role_visibility: str
    program_types: List[str]
    severity: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
