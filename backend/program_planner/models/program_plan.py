"""
Program Planner - ProgramPlan Model
アシスタントとの対話で作成される企画プラン
"""
import enum
import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Boolean, Integer, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from program_planner.db.base import Base, utc_now

if TYPE_CHECKING:
    from program_planner.models.user import User


class ProgramType(str, enum.Enum):
    """企画の種類"""
    MIXER = "mixer"
    CONCERT = "concert"
    WORKSHOP = "workshop"
    LECTURE = "lecture"
    OTHER = "other"


class LocationType(str, enum.Enum):
    """開催場所の区分"""
    ON_CAMPUS = "on-campus"
    OFF_CAMPUS = "off-campus"


class Priority(str, enum.Enum):
    """チェックリスト項目の優先度"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PlanStatus(str, enum.Enum):
    """プランのステータス"""
    PLANNING = "planning"
    APPROVED = "approved"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProgramPlan(Base):
    """企画プラン"""

    __tablename__ = "program_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    program_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="{type: on-campus|off-campus, venue, capacity}",
    )
    has_alcohol: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    expected_attendance: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    budget: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=lambda: {"currency": "USD"},
    )
    timeline: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="{event_date, planning_start_date, deadlines: [{task, due_date, completed}]}",
    )
    checklist: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    conversation_history: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="[{role: user|assistant, content, timestamp}]",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=PlanStatus.PLANNING.value,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="plans")

    def __repr__(self) -> str:
        return f"<ProgramPlan {self.id} title={self.title}>"
