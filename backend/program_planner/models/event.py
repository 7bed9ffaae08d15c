"""
Program Planner - Event Model
チャットから保存されたイベント（チェックリスト・共有・共同編集・通知設定を含む）

埋め込みドキュメント（checklist, collaborators, activity_log 等）は JSONB で保持する。
JSONB 列を更新したときは flag_modified() を呼ぶか、新しいリストを代入すること。
"""
import enum
import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Boolean, Integer, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from program_planner.db.base import Base, utc_now

if TYPE_CHECKING:
    from program_planner.models.user import User
    from program_planner.models.program_plan import ProgramPlan


DEFAULT_REMINDER_DAYS = 5
MIN_REMINDER_DAYS = 1
MAX_REMINDER_DAYS = 30


class EventCategory(str, enum.Enum):
    MEETING = "meeting"
    DEADLINE = "deadline"
    TASK = "task"
    MILESTONE = "milestone"
    OTHER = "other"


class EventStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventType(str, enum.Enum):
    MIXER = "mixer"
    CONCERT = "concert"
    WORKSHOP = "workshop"
    LECTURE = "lecture"
    MEETING = "meeting"
    SOCIAL = "social"
    ACADEMIC = "academic"
    OTHER = "other"


class CollaboratorPermission(str, enum.Enum):
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"


class ActivityAction(str, enum.Enum):
    """共同編集のアクティビティ種別"""
    CREATED = "created"
    UPDATED = "updated"
    COMPLETED_TASK = "completed_task"
    UNCOMPLETED_TASK = "uncompleted_task"
    ADDED_COLLABORATOR = "added_collaborator"
    REMOVED_COLLABORATOR = "removed_collaborator"
    JOINED = "joined"


def default_notifications() -> dict:
    return {"email_opt_in": True, "reminder_days": DEFAULT_REMINDER_DAYS}


class Event(Base):
    """保存済みイベント"""

    __tablename__ = "events"

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
    owner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
        comment="作成者。未設定の場合は user_id と同じ",
    )
    plan_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("program_plans.id", ondelete="SET NULL"),
        nullable=True,
    )

    # ── 基本情報 ──
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    category: Mapped[str] = mapped_column(String(20), default=EventCategory.OTHER.value, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=EventStatus.PENDING.value, nullable=False)

    # ── チャットから更新される詳細 ──
    expected_attendance: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    location: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="{type, venue, address, room}",
    )
    budget: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=lambda: {"currency": "USD"},
    )
    has_alcohol: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    requires_av: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    catering_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    potentially_controversial: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    event_type: Mapped[str] = mapped_column(String(20), default=EventType.OTHER.value, nullable=False)

    checklist: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    timeline: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    source_message: Mapped[Optional[dict]] = mapped_column(
        JSONB,
        nullable=True,
        comment="{content, timestamp, conversation_context: [...]}",
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── 通知 ──
    notifications: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=default_notifications,
    )

    # ── 公開共有 ──
    share_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)
    share_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    share_created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ── 共同編集 ──
    collaboration_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    collaboration_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)
    collaborators: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    activity_log: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    generated_communications: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

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

    user: Mapped["User"] = relationship("User", back_populates="events", foreign_keys=[user_id])
    plan: Mapped[Optional["ProgramPlan"]] = relationship("ProgramPlan")

    @property
    def effective_owner_id(self) -> uuid.UUID:
        """owner_id 未設定の古いレコードは user_id を所有者とみなす"""
        return self.owner_id or self.user_id

    def __repr__(self) -> str:
        return f"<Event {self.id} title={self.title}>"
