"""
Program Planner - Collaboration Service
共同編集の識別・権限判定・招待・アクティビティ記録

Event の JSONB 列（collaborators, activity_log, checklist）は常に新しいリストを
代入して更新する（インプレース変更は SQLAlchemy に検知されない）。
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from program_planner.core.logger import get_traced_logger
from program_planner.core.security import generate_share_token
from program_planner.models.event import ActivityAction, CollaboratorPermission, Event
from program_planner.schemas.collaboration import (
    CollaboratorCreate,
    CollaborativeUpdate,
    JoinRequest,
    normalize_email,
)
from program_planner.schemas.event import Collaborator
from program_planner.services.event_updates import completion_changes

logger = get_traced_logger("Collaboration")

EDIT_PERMISSIONS = {CollaboratorPermission.EDIT.value, CollaboratorPermission.ADMIN.value}


class DuplicateCollaboratorError(ValueError):
    """同じメールアドレスの共同編集者が既に存在する"""


class CollaboratorNotFoundError(LookupError):
    """指定された共同編集者が存在しない"""


class NotInvitedError(PermissionError):
    """招待されていないユーザーが参加しようとした"""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ────────────────────────────────────────
# 識別と権限
# ────────────────────────────────────────

def is_owner(event: Event, user_id: Optional[str]) -> bool:
    return bool(user_id) and str(event.effective_owner_id) == str(user_id)


def find_collaborator(
    event: Event,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """user_id またはメールアドレス（正規化済み）で共同編集者を探す"""
    email = normalize_email(email)
    for collaborator in event.collaborators or []:
        if user_id and collaborator.get("user_id") == str(user_id):
            return collaborator
        if email and normalize_email(collaborator.get("email")) == email:
            return collaborator
    return None


def can_view(event: Event, user_id: Optional[str], email: Optional[str] = None) -> bool:
    return is_owner(event, user_id) or find_collaborator(event, user_id, email) is not None


def can_edit(event: Event, user_id: Optional[str], email: Optional[str] = None) -> bool:
    if is_owner(event, user_id):
        return True
    collaborator = find_collaborator(event, user_id, email)
    return collaborator is not None and collaborator.get("permission") in EDIT_PERMISSIONS


def can_manage(event: Event, user_id: Optional[str], email: Optional[str] = None) -> bool:
    """共有設定・共同編集者の管理ができるのは所有者と admin のみ"""
    if is_owner(event, user_id):
        return True
    collaborator = find_collaborator(event, user_id, email)
    return (
        collaborator is not None
        and collaborator.get("permission") == CollaboratorPermission.ADMIN.value
    )


# ────────────────────────────────────────
# アクティビティ
# ────────────────────────────────────────

def log_activity(
    event: Event,
    action: ActivityAction,
    description: str,
    user_id: Optional[str] = None,
    user_name: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    entry = {
        "user_id": str(user_id) if user_id else None,
        "user_name": user_name,
        "action": action.value,
        "description": description,
        "timestamp": _now_iso(),
        "metadata": metadata,
    }
    event.activity_log = list(event.activity_log or []) + [entry]
    return entry


def activity_newest_first(event: Event) -> List[Dict[str, Any]]:
    return sorted(
        event.activity_log or [],
        key=lambda entry: entry.get("timestamp") or "",
        reverse=True,
    )


# ────────────────────────────────────────
# 共同編集の有効化・招待
# ────────────────────────────────────────

def enable_collaboration(event: Event) -> str:
    """collaboration_id を（未作成なら）発行して共同編集を有効にする"""
    if not event.collaboration_id:
        event.collaboration_id = generate_share_token()
    event.collaboration_enabled = True
    return event.collaboration_id


def disable_collaboration(event: Event) -> None:
    event.collaboration_enabled = False


def add_collaborator(
    event: Event,
    request: CollaboratorCreate,
    added_by: str,
    added_by_name: Optional[str] = None,
) -> Dict[str, Any]:
    email = normalize_email(request.email)
    if find_collaborator(event, email=email) is not None:
        raise DuplicateCollaboratorError(email)

    collaborator = Collaborator(
        email=email,
        first_name=request.first_name,
        last_name=request.last_name,
        permission=request.permission,
        added_at=datetime.now(timezone.utc),
        added_by=str(added_by),
    ).model_dump(mode="json")

    event.collaborators = list(event.collaborators or []) + [collaborator]
    log_activity(
        event,
        ActivityAction.ADDED_COLLABORATOR,
        f"Added {email} as {collaborator['permission']} collaborator",
        user_id=added_by,
        user_name=added_by_name,
        metadata={"collaborator_email": email, "permission": collaborator["permission"]},
    )
    logger.info(
        "Collaborator added",
        metadata={"event_id": str(event.id), "permission": collaborator["permission"]},
    )
    return collaborator


def remove_collaborator(
    event: Event,
    collaborator_id: str,
    removed_by: str,
    removed_by_name: Optional[str] = None,
) -> Dict[str, Any]:
    remaining = []
    removed = None
    for collaborator in event.collaborators or []:
        if removed is None and collaborator.get("id") == collaborator_id:
            removed = collaborator
        else:
            remaining.append(collaborator)

    if removed is None:
        raise CollaboratorNotFoundError(collaborator_id)

    event.collaborators = remaining
    log_activity(
        event,
        ActivityAction.REMOVED_COLLABORATOR,
        f"Removed {removed.get('email')} from collaborators",
        user_id=removed_by,
        user_name=removed_by_name,
        metadata={"collaborator_email": removed.get("email")},
    )
    return removed


def join_collaboration(event: Event, request: JoinRequest) -> Optional[Dict[str, Any]]:
    """
    招待済みユーザーを共同編集に参加させる。

    所有者は常に参加できる（None を返す）。招待されていなければ NotInvitedError。
    """
    if is_owner(event, request.user_id):
        return None

    collaborator = find_collaborator(event, request.user_id, request.email)
    if collaborator is None:
        raise NotInvitedError(normalize_email(request.email))

    updated = dict(collaborator)
    if request.user_id:
        updated["user_id"] = str(request.user_id)
    updated["first_name"] = collaborator.get("first_name") or request.first_name
    updated["last_name"] = collaborator.get("last_name") or request.last_name
    updated["last_active"] = _now_iso()

    event.collaborators = [
        updated if c.get("id") == collaborator.get("id") else c
        for c in event.collaborators
    ]

    name = " ".join(p for p in (updated["first_name"], updated["last_name"]) if p)
    log_activity(
        event,
        ActivityAction.JOINED,
        f"{name or updated.get('email')} joined the collaboration",
        user_id=updated.get("user_id"),
        user_name=name or None,
    )
    return updated


def touch_collaborator(event: Event, user_id: Optional[str], email: Optional[str]) -> None:
    collaborator = find_collaborator(event, user_id, email)
    if collaborator is None:
        return
    event.collaborators = [
        {**c, "last_active": _now_iso()} if c.get("id") == collaborator.get("id") else c
        for c in event.collaborators
    ]


# ────────────────────────────────────────
# 共同編集による更新
# ────────────────────────────────────────

def record_collaborative_changes(
    event: Event,
    update: CollaborativeUpdate,
    previous_checklist: List[Dict[str, Any]],
    changed_fields: List[str],
) -> List[Dict[str, Any]]:
    """
    共同編集の更新内容をアクティビティとして記録する。

    チェック状態が切り替わった項目は completed_task / uncompleted_task、
    それ以外の変更は updated としてまとめて 1 件記録する。
    """
    entries = []
    for change in completion_changes(previous_checklist, event.checklist or []):
        action = (
            ActivityAction.COMPLETED_TASK if change["completed"]
            else ActivityAction.UNCOMPLETED_TASK
        )
        verb = "Completed" if change["completed"] else "Uncompleted"
        entries.append(log_activity(
            event,
            action,
            f'{verb} task: "{change["task"]}"',
            user_id=update.user_id,
            user_name=update.user_name,
            metadata={"task_index": change["index"]},
        ))

    other_fields = [name for name in changed_fields if name != "checklist"]
    if other_fields or ("checklist" in changed_fields and not entries):
        entries.append(log_activity(
            event,
            ActivityAction.UPDATED,
            "Updated " + ", ".join(other_fields or ["checklist"]),
            user_id=update.user_id,
            user_name=update.user_name,
            metadata={"fields": other_fields or ["checklist"]},
        ))
    return entries
