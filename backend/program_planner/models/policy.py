"""
Program Planner - Policy Model
キャンパスイベント企画に関わる大学ポリシー

件数は少数（数十件程度）で、チャット時にメモリ上でフィルタする前提。
"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import String, Text, DateTime, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from program_planner.db.base import Base, utc_now


class RoleVisibility(str, enum.Enum):
    """ポリシーを表示する対象"""
    STUDENT = "student"
    STAFF = "staff"
    BOTH = "both"


class Severity(str, enum.Enum):
    """ポリシーの重要度"""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class Policy(Base):
    """大学ポリシー"""

    __tablename__ = "policies"
    __table_args__ = (
        Index("ix_policies_category_role_visibility", "category", "role_visibility"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    requirements: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    citations: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    tags: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    timeline: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="{min_advance_notice, recommended_advance_notice} (days)",
    )
    role_visibility: Mapped[str] = mapped_column(
        String(20),
        default=RoleVisibility.BOTH.value,
        nullable=False,
    )
    program_types: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="空リストは全種別に適用",
    )
    severity: Mapped[str] = mapped_column(
        String(20),
        default=Severity.INFO.value,
        nullable=False,
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

    def __repr__(self) -> str:
        return f"<Policy {self.category}: {self.title}>"
