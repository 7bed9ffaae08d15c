"""
Program Planner - Communication Generator
イベント告知文（メール・SNS投稿・チラシ等）の生成
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from program_planner.core.llm import strip_code_fences
from program_planner.core.llm_provider import LLMUsageRole
from program_planner.core.logger import get_traced_logger, trace_execution
from program_planner.models.event import Event
from program_planner.schemas.communication import CommunicationRequest, CommunicationType
from program_planner.services.assistant import planning_assistant

logger = get_traced_logger("Communications")

# 媒体ごとの文字数上限（上限のない媒体は含めない）
CHARACTER_LIMITS: Dict[CommunicationType, int] = {
    CommunicationType.TWITTER: 280,
    CommunicationType.INSTAGRAM: 2200,
    CommunicationType.FACEBOOK: 63206,
    CommunicationType.LINKEDIN: 3000,
}

FORMAT_GUIDANCE: Dict[CommunicationType, str] = {
    CommunicationType.EMAIL: "Write an email with a subject line, greeting, body and sign-off.",
    CommunicationType.FLYER: "Write flyer copy: a headline, a short tagline and the key details as brief lines.",
    CommunicationType.INSTAGRAM: "Write an Instagram caption with a few relevant hashtags.",
    CommunicationType.TWITTER: "Write a single post for X/Twitter.",
    CommunicationType.FACEBOOK: "Write a Facebook event post.",
    CommunicationType.LINKEDIN: "Write a LinkedIn post suited to a professional audience.",
    CommunicationType.NEWSLETTER: "Write a newsletter blurb with a short heading.",
    CommunicationType.ANNOUNCEMENT: "Write a short announcement suitable for reading aloud or posting on a bulletin board.",
}


def character_limit(communication_type: CommunicationType) -> Optional[int]:
    return CHARACTER_LIMITS.get(communication_type)


def build_communication_prompt(event: Event, request: CommunicationRequest) -> str:
    location = event.location or {}
    lines = [
        f"Create a {request.communication_type.value} to promote this campus event.",
        FORMAT_GUIDANCE[request.communication_type],
        f"Tone: {request.tone}.",
        "",
        "EVENT DETAILS:",
        f"Title: {event.title}",
        f"Description: {event.description or 'Not provided'}",
        f"Date: {event.event_date.isoformat() if event.event_date else 'TBD'}",
        f"Location: {location.get('venue') or 'TBD'}",
        f"Event Type: {event.event_type}",
        f"Expected Attendance: {event.expected_attendance or 'Not set'}",
    ]

    limit = character_limit(request.communication_type)
    if limit:
        lines += ["", f"The text MUST be at most {limit} characters long."]
    if request.custom_instructions:
        lines += ["", f"Additional instructions: {request.custom_instructions}"]
    lines += ["", "Respond with the communication text only, without commentary."]
    return "\n".join(lines)


@trace_execution("Communications", "generate_communication")
async def generate_communication(
    event: Event,
    request: CommunicationRequest,
    generated_by: Optional[str] = None,
) -> Dict[str, Any]:
    """
    告知文を生成してイベントの generated_communications に追加する。

    生成結果は文字数と上限内かどうかを含む。プロバイダーのエラーは送出する。
    """
    prompt = build_communication_prompt(event, request)
    content = strip_code_fences(
        await planning_assistant.complete(prompt, role=LLMUsageRole.CHAT)
    )

    limit = character_limit(request.communication_type)
    communication = {
        "communication_type": request.communication_type.value,
        "tone": request.tone,
        "content": content,
        "character_count": len(content),
        "character_limit": limit,
        "within_limit": limit is None or len(content) <= limit,
        "custom_instructions": request.custom_instructions,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "generated_by": generated_by,
    }

    if not communication["within_limit"]:
        logger.warning(
            "Generated communication exceeds character limit",
            metadata={"type": communication["communication_type"], "count": len(content), "limit": limit},
        )

    event.generated_communications = list(event.generated_communications or []) + [communication]
    return communication
