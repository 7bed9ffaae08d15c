"""
Program Planner - Policy Context Builder
チャットメッセージ・プラン・ユーザーから関連ポリシーを選び、
モデルに渡す簡潔なコンテキスト文字列を組み立てる。

ポリシー件数は少数のため、全件をメモリ上でフィルタする。
"""
import re
from typing import Any, Iterable, List, Optional

from program_planner.models.policy import Policy

# プロンプト肥大化防止の上限
MAX_POLICIES = 12
MAX_REQUIREMENTS = 6
MAX_CITATIONS = 2

CONTEXT_HEADER = "POLICY CONTEXT (concise):"

ALCOHOL_PATTERN = re.compile(
    r"\b(alcohol|beer|wine|bartend\w*|wet\s*event|id\s*check|21\+)",
    re.IGNORECASE,
)
TECH_PATTERN = re.compile(
    r"\b(email(s)?|bulk\s*email|mass\s*email|listserv|mailchimp|social\s*media|wifi|wi-?fi"
    r"|it\s|cyber|malware|password|credential|record(ing)?|av\b|software|download|install"
    r"|BYOD|device|HIPAA|FERPA)\b",
    re.IGNORECASE,
)
MINORS_PATTERN = re.compile(
    r"\b(minor(s)?|under\s*18|youth|camp|K-?12|child|children)\b",
    re.IGNORECASE,
)


def is_alcohol_relevant(message: Optional[str], plan: Any = None) -> bool:
    if plan is not None and getattr(plan, "has_alcohol", False):
        return True
    return bool(ALCOHOL_PATTERN.search(message or ""))


def is_tech_relevant(message: Optional[str]) -> bool:
    return bool(TECH_PATTERN.search(message or ""))


def is_minors_relevant(message: Optional[str]) -> bool:
    return bool(MINORS_PATTERN.search(message or ""))


def wanted_categories(message: Optional[str], plan: Any = None) -> List[str]:
    """メッセージとプランから、対象とするポリシーカテゴリのラベルを列挙する"""
    campus = "on-campus"
    if plan is not None:
        campus = (getattr(plan, "location", None) or {}).get("type") or "on-campus"

    want: List[str] = []
    if campus == "on-campus":
        want += ["Use of Space", "Space Booking"]

    want += ["Marketing and Communications", "Marketing"]

    if is_alcohol_relevant(message, plan):
        want += ["Alcohol Policy", "Alcohol"]
    if is_tech_relevant(message):
        want += ["Technology", "Electronic Communications"]
    if is_minors_relevant(message):
        want.append("Protection of Minors")

    return want


def select_relevant_policies(
    policies: Iterable[Policy],
    message: Optional[str],
    plan: Any = None,
    user: Any = None,
) -> List[Policy]:
    """カテゴリ・ロール・企画種別で関連ポリシーを絞り込む"""
    want = [w.lower() for w in wanted_categories(message, plan)]
    program_type = getattr(plan, "program_type", None) or "other"
    role = (getattr(user, "role", None) or "both").lower()

    relevant = []
    for policy in policies:
        category = (policy.category or "").lower()
        if not any(w in category for w in want):
            continue

        visibility = policy.role_visibility or "both"
        if visibility != "both" and visibility != role:
            continue

        program_types = policy.program_types or []
        if program_types and program_type not in program_types:
            continue

        relevant.append(policy)

    return relevant


def format_policy_context(policies: List[Policy]) -> str:
    """関連ポリシーを短いテキストにまとめる（該当なしは空文字）"""
    if not policies:
        return ""

    lines = [CONTEXT_HEADER]
    for policy in policies[:MAX_POLICIES]:
        reqs = [f"• {r}" for r in (policy.requirements or [])[:MAX_REQUIREMENTS]]
        cites = " ".join(f"({c})" for c in (policy.citations or [])[:MAX_CITATIONS])
        heading = f"- {policy.category}: {policy.title}"
        if cites:
            heading += f" {cites}"
        lines.append(heading + "\n  " + "\n  ".join(reqs))
    return "\n".join(lines)


def build_policy_context(
    policies: Iterable[Policy],
    message: Optional[str],
    plan: Any = None,
    user: Any = None,
) -> str:
    """関連ポリシーの選択と整形をまとめて行う"""
    relevant = select_relevant_policies(policies, message, plan=plan, user=user)
    return format_policy_context(relevant)
