"""
Program Planner - Planning Assistant
大学の企画ポリシーに沿って計画を支援するチャットアシスタント
"""
from typing import Dict, List, Optional

from program_planner.core.llm import llm_manager
from program_planner.core.llm_provider import LLMUsageRole
from program_planner.core.logger import get_traced_logger, trace_execution

logger = get_traced_logger("Assistant")

# 直前の会話として渡すターン数
MAX_CONTEXT_TURNS = 10

TECHNICAL_DIFFICULTIES_REPLY = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Please try again in a moment."
)

SYSTEM_PROMPT = """\
You are a Program Planning AI Assistant for Vanderbilt University. Help users navigate program planning policies, timelines, and requirements. Focus on:
- Space booking procedures
- Marketing timelines
- Invitation requirements
- Vendor coordination
- Financial policies
- On-campus vs off-campus considerations
- Alcohol policy compliance

Ask clarifying questions about:
- Program type (mixer, concert, workshop, lecture)
- Location (on/off campus)
- Alcohol involvement
- Expected attendance
- Budget range
- Timeline

Provide specific, actionable guidance with policy citations and create checklists when appropriate.\
"""


class PlanningAssistant:
    """
    企画アシスタント

    システムプロンプト + 直近の会話 + ポリシーコンテキストを組み立ててモデルに渡す。
    """

    def build_messages(
        self,
        message: str,
        context: Optional[List[Dict[str, str]]] = None,
        policy_context: str = "",
    ) -> List[Dict[str, str]]:
        """モデルに送るメッセージ列を組み立てる"""
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend((context or [])[-MAX_CONTEXT_TURNS:])
        if policy_context:
            messages.append({"role": "system", "content": policy_context})
        messages.append({"role": "user", "content": message})
        return messages

    @trace_execution("Assistant", "chat")
    async def chat(
        self,
        message: str,
        context: Optional[List[Dict[str, str]]] = None,
        policy_context: str = "",
    ) -> str:
        """
        アシスタントの返信を生成する。

        プロバイダーのエラーはそのまま送出する（呼び出し側で応答文に変換する）。
        """
        provider = llm_manager.get_client(LLMUsageRole.CHAT)
        response = await provider.generate_text(
            self.build_messages(message, context, policy_context)
        )
        return response.content

    async def complete(self, prompt: str, role: LLMUsageRole = LLMUsageRole.EXTRACTION) -> str:
        """会話履歴なしの単発プロンプト（抽出・文面生成用）"""
        provider = llm_manager.get_client(role)
        response = await provider.generate_text(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
        )
        return response.content


# シングルトンインスタンス
planning_assistant = PlanningAssistant()
