"""
Program Planner - Database Models
データベースモデルの定義
"""
from program_planner.models.user import User, UserRole
from program_planner.models.program_plan import (
    ProgramPlan,
    ProgramType,
    LocationType,
    Priority,
    PlanStatus,
)
from program_planner.models.policy import Policy, RoleVisibility, Severity
from program_planner.models.event import (
    Event,
    EventCategory,
    EventStatus,
    EventType,
    CollaboratorPermission,
    ActivityAction,
)

__all__ = [
    "User",
    "UserRole",
    "ProgramPlan",
    "ProgramType",
    "LocationType",
    "Priority",
    "PlanStatus",
    "Policy",
    "RoleVisibility",
    "Severity",
    "Event",
    "EventCategory",
    "EventStatus",
    "EventType",
    "CollaboratorPermission",
    "ActivityAction",
]
