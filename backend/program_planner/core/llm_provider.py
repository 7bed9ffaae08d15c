"""
Program Planner - LLM Provider Interface
Amplify / OpenAI を同じ呼び出し方で扱うための抽象インターフェース
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class LLMUsageRole(str, Enum):
    """呼び出し用途。用途ごとに llm_config_<role> でモデルと温度を切り替える"""
    CHAT = "chat"              # アシスタントとの対話
    EXTRACTION = "extraction"  # 会話からの構造化データ抽出・文面生成


class ProviderType(str, Enum):
    AMPLIFY = "amplify"
    OPENAI = "openai"


class LLMProviderConfig(BaseModel):
    """用途ごとのモデル設定（Amplify の既定値: temperature 0.7, max_tokens 1500）"""
    provider: ProviderType
    model: str
    temperature: Optional[float] = 0.7
    max_tokens: Optional[int] = 1500


class LLMResponse(BaseModel):
    content: str
    model: str
    provider: ProviderType
    usage: Optional[Dict[str, int]] = None
    raw_response: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    チャット補完プロバイダーの基底クラス

    実装は generate_text だけを提供すればよい。リトライは行わず、
    上流のエラーはそのまま呼び出し側へ送出する。
    """

    def __init__(self, config: LLMProviderConfig):
        self.config = config
        self._initialized = False

    @property
    @abstractmethod
    def provider_type(self) -> ProviderType:
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """認証情報・接続先の検証（設定不備は ValueError）"""

    @abstractmethod
    async def generate_text(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        チャット補完

        Args:
            messages: [{"role": "system" | "user" | "assistant", "content": "..."}]
            temperature: 省略時は config の値
            max_tokens: 省略時は config の値
        """

    def resolve_temperature(self, temperature: Optional[float]) -> Optional[float]:
        return temperature if temperature is not None else self.config.temperature

    def resolve_max_tokens(self, max_tokens: Optional[int]) -> Optional[int]:
        return max_tokens or self.config.max_tokens
