"""
Program Planner - Event Update Service
会話からのイベント更新内容の抽出と、チェックリストのマージ規則
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from program_planner.core.llm import extract_json_from_text
from program_planner.core.logger import get_traced_logger
from program_planner.services.assistant import planning_assistant

logger = get_traced_logger("EventUpdates")

# あいまい一致で比較するタスク名の先頭文字数
FUZZY_PREFIX_LENGTH = 20

DEFAULT_INSTRUCTIONS = "Update the event based on this conversation."

UPDATE_PROMPT_TEMPLATE = """\
{instructions}

EXISTING EVENT DATA:
Title: {title}
Description: {description}
Date: {event_date}
Category: {category}
Priority: {priority}
Expected Attendance: {expected_attendance}
Location: {venue}
Budget: {budget}
Has Alcohol: {has_alcohol}
Event Type: {event_type}

CONVERSATION TO ANALYZE:
{conversation}

Analyze this conversation and extract ONLY information that has changed or been explicitly discussed. Look for:
- Changes to number of attendees/people/guests/expected attendance
- Updates to event description or details
- New or modified dates
- Budget changes or mentions
- Location updates (venue, room, etc.)
- Event type changes
- Alcohol policy mentions
- New tasks or checklist items
- Priority or category changes

Respond in valid JSON format with only the fields that were discussed or changed:
{{
  "title": "new title if changed",
  "description": "updated description if discussed",
  "event_date": "YYYY-MM-DD if new date mentioned",
  "expected_attendance": number_if_discussed,
  "location": {{
    "venue": "venue name if mentioned",
    "room": "room if mentioned"
  }},
  "budget": {{
    "amount": number_if_discussed
  }},
  "has_alcohol": boolean_if_discussed,
  "event_type": "type if changed",
  "category": "category if changed",
  "priority": "priority if changed",
  "checklist": [
    {{
      "task": "task description",
      "due_date": "YYYY-MM-DD or null",
      "priority": "low|medium|high|critical",
      "category": "category name"
    }}
  ]
}}

IMPORTANT: Only include fields that were actually discussed or changed. Omit any fields not mentioned in the conversation.\
"""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_update_prompt(
    existing_event: Dict[str, Any],
    conversation: str,
    instructions: Optional[str] = None,
) -> str:
    """イベント更新抽出用のプロンプトを組み立てる"""
    location = existing_event.get("location") or {}
    budget = existing_event.get("budget") or {}
    return UPDATE_PROMPT_TEMPLATE.format(
        instructions=instructions or DEFAULT_INSTRUCTIONS,
        title=existing_event.get("title"),
        description=existing_event.get("description") or "Not provided",
        event_date=existing_event.get("event_date") or "Not set",
        category=existing_event.get("category") or "Not set",
        priority=existing_event.get("priority") or "Not set",
        expected_attendance=existing_event.get("expected_attendance") or "Not set",
        venue=location.get("venue") or "Not set",
        budget=budget.get("amount") or "Not set",
        has_alcohol=bool(existing_event.get("has_alcohol", False)),
        event_type=existing_event.get("event_type") or "Not set",
        conversation=conversation,
    )


def parse_update_response(text: str, existing_event: Dict[str, Any]) -> Dict[str, Any]:
    """モデルの返答から JSON を取り出す。読めなければ既存の説明のみのフォールバック"""
    parsed = extract_json_from_text(text)
    if parsed is not None:
        return parsed

    logger.warning("Could not parse AI response as JSON, using fallback")
    return {
        "description": existing_event.get("description") or "",
        "checklist": [],
    }


def filter_event_update(
    event_data: Dict[str, Any],
    existing_event: Dict[str, Any],
) -> Dict[str, Any]:
    """既存イベントと比べて変化のあった項目だけを残す"""
    filtered: Dict[str, Any] = {}
    existing_location = existing_event.get("location") or {}
    existing_budget = existing_event.get("budget") or {}

    for key in ("title", "event_date", "category", "priority", "event_type"):
        value = event_data.get(key)
        if value and value != existing_event.get(key):
            filtered[key] = value

    if event_data.get("description"):
        filtered["description"] = event_data["description"]

    attendance = event_data.get("expected_attendance")
    if _is_number(attendance) and attendance != existing_event.get("expected_attendance"):
        filtered["expected_attendance"] = attendance

    location = event_data.get("location")
    if isinstance(location, dict):
        changes = {
            key: location[key]
            for key in ("venue", "room")
            if location.get(key) and location[key] != existing_location.get(key)
        }
        if changes:
            filtered["location"] = {**existing_location, **changes}

    budget = event_data.get("budget")
    if (
        isinstance(budget, dict)
        and _is_number(budget.get("amount"))
        and budget["amount"] != existing_budget.get("amount")
    ):
        filtered["budget"] = {**existing_budget, "amount": budget["amount"]}

    has_alcohol = event_data.get("has_alcohol")
    if isinstance(has_alcohol, bool) and has_alcohol != existing_event.get("has_alcohol"):
        filtered["has_alcohol"] = has_alcohol

    checklist = event_data.get("checklist")
    if isinstance(checklist, list) and checklist:
        filtered["checklist"] = [
            {
                "task": item.get("task") or "",
                "due_date": item.get("due_date"),
                "completed": False,
                "priority": item.get("priority") or "medium",
                "category": item.get("category") or "general",
            }
            for item in checklist
            if isinstance(item, dict)
        ]

    filtered["updated_at"] = datetime.now(timezone.utc).isoformat()
    return filtered


async def generate_event_update(
    conversation: str,
    existing_event: Dict[str, Any],
    instructions: Optional[str] = None,
) -> Dict[str, Any]:
    """
    会話からイベントの更新差分を生成する。

    モデル呼び出しの失敗は送出する（エンドポイントで 500 に変換）。
    """
    prompt = build_update_prompt(existing_event, conversation, instructions)
    reply = await planning_assistant.complete(prompt)
    event_data = parse_update_response(reply, existing_event)
    return filter_event_update(event_data, existing_event)


# ────────────────────────────────────────
# チェックリストのマージ
# ────────────────────────────────────────

def _task_key(item: Dict[str, Any]) -> str:
    return str(item.get("task") or "").lower()


def is_similar_task(existing: Dict[str, Any], incoming: Dict[str, Any]) -> bool:
    """どちらかのタスク名が、もう一方の先頭20文字を含んでいれば同一とみなす"""
    a, b = _task_key(existing), _task_key(incoming)
    return b[:FUZZY_PREFIX_LENGTH] in a or a[:FUZZY_PREFIX_LENGTH] in b


def stamp_completion(
    existing: List[Dict[str, Any]],
    incoming: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """同じ位置の項目で completed が切り替わったものに completed_at を付け外しする"""
    now = datetime.now(timezone.utc).isoformat()
    stamped = []
    for index, item in enumerate(incoming):
        item = dict(item)
        previous = existing[index] if index < len(existing) else {}
        if item.get("completed") and not previous.get("completed"):
            item["completed_at"] = item.get("completed_at") or now
        elif not item.get("completed"):
            item["completed_at"] = None
        stamped.append(item)
    return stamped


def merge_checklist(
    existing: List[Dict[str, Any]],
    incoming: List[Dict[str, Any]],
) -> Optional[List[Dict[str, Any]]]:
    """
    チェックリスト更新のマージ規則

    - 件数が同じ: チェック切り替え等の全件更新としてそのまま置き換える
    - 件数が違う: 既存と似ていない新規項目のみ末尾に追加する
    - 追加がない: None（チェックリストは変更しない）
    """
    existing = existing or []
    if len(incoming) == len(existing):
        return stamp_completion(existing, incoming)

    new_items = [
        item for item in incoming
        if not any(is_similar_task(old, item) for old in existing)
    ]
    if not new_items:
        return None

    logger.info("Adding new checklist items", metadata={"count": len(new_items)})
    return list(existing) + new_items


def completion_changes(
    existing: List[Dict[str, Any]],
    updated: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """completed が切り替わった項目を [{index, task, completed}] で返す"""
    changes = []
    for index, item in enumerate(updated):
        if index >= len(existing):
            break
        before = bool(existing[index].get("completed"))
        after = bool(item.get("completed"))
        if before != after:
            changes.append({"index": index, "task": item.get("task"), "completed": after})
    return changes
