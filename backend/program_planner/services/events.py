"""
Program Planner - Event Service
イベントの作成・部分更新・検索
"""
import enum
import uuid
from typing import Iterable, List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from program_planner.models.event import (
    ActivityAction,
    Event,
    EventCategory,
    EventStatus,
    EventType,
    default_notifications,
)
from program_planner.models.program_plan import Priority
from program_planner.models.user import User
from program_planner.schemas.event import EventCreate
from program_planner.services.collaboration import log_activity
from program_planner.services.event_updates import merge_checklist

# JSONB に保存するため JSON 互換の値で代入するフィールド
JSON_FIELDS = {"location", "budget", "checklist", "timeline", "notifications", "source_message"}

# None を代入できないフィールド（None が送られた場合は無視）
REQUIRED_FIELDS = {
    "title",
    "category",
    "priority",
    "status",
    "event_type",
    "has_alcohol",
    "requires_av",
    "catering_required",
    "potentially_controversial",
    "location",
    "budget",
    "checklist",
    "timeline",
    "notifications",
}


def apply_event_fields(
    event: Event,
    fields: BaseModel,
    exclude: Iterable[str] = (),
) -> List[str]:
    """
    送られてきた項目だけをイベントに反映し、変更されたフィールド名を返す。

    checklist はマージ規則（merge_checklist）に従う。
    """
    exclude = set(exclude)
    keys = fields.model_fields_set - exclude
    raw = fields.model_dump(include=keys)
    as_json = fields.model_dump(include=keys, mode="json")

    changed = []
    for name, value in raw.items():
        if name in JSON_FIELDS:
            value = as_json[name]
        elif isinstance(value, enum.Enum):
            value = value.value

        if value is None and name in REQUIRED_FIELDS:
            continue

        if name == "checklist":
            value = merge_checklist(event.checklist or [], value)
            if value is None:
                continue

        if getattr(event, name) != value:
            setattr(event, name, value)
            changed.append(name)

    return changed


def build_event(data: EventCreate, user: User) -> Event:
    """作成リクエストから新しいイベントを組み立てる（owner は作成者）"""
    event = Event(
        id=uuid.uuid4(),
        user_id=user.id,
        owner_id=user.id,
        plan_id=data.plan_id,
        title=data.title,
        location={},
        budget={"currency": "USD"},
        checklist=[],
        timeline=[],
        notifications=default_notifications(),
        collaborators=[],
        activity_log=[],
        generated_communications=[],
        share_enabled=False,
        collaboration_enabled=False,
        category=EventCategory.OTHER.value,
        priority=Priority.MEDIUM.value,
        status=EventStatus.PENDING.value,
        event_type=EventType.OTHER.value,
        has_alcohol=False,
        requires_av=False,
        catering_required=False,
        potentially_controversial=False,
    )

    apply_event_fields(event, data, exclude={"title", "plan_id"})
    log_activity(
        event,
        ActivityAction.CREATED,
        f"Created event: {data.title}",
        user_id=user.id,
        user_name=user.full_name,
    )
    return event


async def get_event(
    session: AsyncSession,
    event_id: uuid.UUID,
) -> Optional[Event]:
    result = await session.execute(
        select(Event).options(selectinload(Event.plan)).where(Event.id == event_id)
    )
    return result.scalar_one_or_none()


async def get_shared_event(session: AsyncSession, share_id: str) -> Optional[Event]:
    """共有が有効なイベントのみ返す"""
    result = await session.execute(
        select(Event).where(Event.share_id == share_id, Event.share_enabled.is_(True))
    )
    return result.scalar_one_or_none()


async def get_collaborative_event(
    session: AsyncSession,
    collaboration_id: str,
) -> Optional[Event]:
    """共同編集が有効なイベントのみ返す"""
    result = await session.execute(
        select(Event)
        .options(selectinload(Event.plan))
        .where(
            Event.collaboration_id == collaboration_id,
            Event.collaboration_enabled.is_(True),
        )
    )
    return result.scalar_one_or_none()
