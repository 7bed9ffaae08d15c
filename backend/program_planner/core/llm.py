"""
Program Planner - LLM Manager
マルチプロバイダー対応のLLMマネージャー（シングルトン）

用途（LLMUsageRole）に応じて適切なプロバイダーとモデルの組み合わせを返却する。
"""
import json
import re
from typing import Any, Dict, Optional

from program_planner.core.config import settings
from program_planner.core.llm_provider import (
    LLMProvider,
    LLMProviderConfig,
    LLMUsageRole,
    ProviderType,
)

_CODE_FENCE_PATTERN = re.compile(r"```json\s*|\s*```")


def strip_code_fences(text: str) -> str:
    """```json ... ``` のマークダウン囲みを除去する"""
    return _CODE_FENCE_PATTERN.sub("", text or "").strip()


def extract_json_from_text(text: str) -> Optional[Dict[str, Any]]:
    """
    テキストからJSONオブジェクトを抽出

    モデルが説明文やコードブロックで囲んで返す場合に備え、
    全体 → コードブロック → 最外の {...} の順に試す。
    """
    if not text:
        return None

    try:
        parsed = json.loads(strip_code_fences(text))
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    json_patterns = [
        r"```json\s*([\s\S]*?)\s*```",  # ```json ... ```
        r"```\s*([\s\S]*?)\s*```",       # ``` ... ```
        r"(\{[\s\S]*\})",                 # { ... } (最外のJSONオブジェクト)
    ]

    for pattern in json_patterns:
        for match in re.findall(pattern, text):
            try:
                parsed = json.loads(match.strip())
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed

    return None


class LLMManager:
    """
    LLMマネージャー（シングルトン）

    用途（LLMUsageRole）に応じて適切なプロバイダーとモデルの組み合わせを返却する。
    プロバイダーインスタンスはキャッシュされ、再利用される。
    """

    _instance: Optional["LLMManager"] = None
    _providers: Dict[str, LLMProvider] = {}

    def __new__(cls) -> "LLMManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._providers = {}
        return cls._instance

    def _create_provider(self, config: Dict[str, Any]) -> LLMProvider:
        """設定からプロバイダーインスタンスを作成"""
        provider_type = config.get("provider", "amplify").lower()

        provider_config = LLMProviderConfig(
            provider=ProviderType(provider_type),
            model=config.get("model") or settings.amplify_model,
            temperature=config.get("temperature", 0.7),
            max_tokens=config.get("max_tokens", 1500),
        )

        if provider_type == "amplify":
            from program_planner.core.providers.amplify import AmplifyProvider
            return AmplifyProvider(config=provider_config)
        elif provider_type == "openai":
            from program_planner.core.providers.openai import OpenAIProvider
            return OpenAIProvider(
                config=provider_config,
                api_key=settings.openai_api_key,
            )
        else:
            raise ValueError(f"Unknown provider type: {provider_type}")

    def _get_cache_key(self, role: LLMUsageRole) -> str:
        """キャッシュキーを生成"""
        config = settings.get_llm_config(role.value)
        return (
            f"{config.get('provider', 'amplify')}:{config.get('model') or settings.amplify_model}"
            f":{config.get('temperature')}"
        )

    def get_client(self, role: LLMUsageRole) -> LLMProvider:
        """
        用途に応じたLLMプロバイダーを取得

        Args:
            role: LLMUsageRole (CHAT, EXTRACTION)

        Returns:
            設定に基づいた適切なLLMProviderインスタンス
        """
        cache_key = self._get_cache_key(role)

        if cache_key not in self._providers:
            config = settings.get_llm_config(role.value)
            self._providers[cache_key] = self._create_provider(config)

        return self._providers[cache_key]

    def clear_cache(self) -> None:
        """プロバイダーキャッシュをクリア"""
        self._providers.clear()


# シングルトンインスタンス
llm_manager = LLMManager()
