"""
Program Planner - Amplify Provider
Amplify チャット補完APIを使用するLLMプロバイダー実装
"""
import json
from typing import Any, Dict, List, Optional

import httpx

from program_planner.core.config import Settings, settings as default_settings
from program_planner.core.llm_provider import (
    LLMProvider,
    LLMProviderConfig,
    LLMResponse,
    ProviderType,
)

AI_DISABLED_REPLY = "AI is disabled by configuration."
NO_REPLY_FALLBACK = "Sorry, I could not process your request."


class AmplifyAPIError(Exception):
    """Amplify API が 2xx 以外を返した"""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        message = f"Amplify API error: {status_code}"
        if body:
            message += f" - {body}"
        super().__init__(message)


def extract_reply(payload: Any) -> str:
    """
    Amplify のレスポンスから返信テキストを取り出す

    優先順位: data → choices[0].message.content → message
    """
    if not isinstance(payload, dict):
        return NO_REPLY_FALLBACK

    data = payload.get("data")
    if data is not None:
        return data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)

    choices = payload.get("choices")
    if isinstance(choices, list) and choices:
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if isinstance(message, dict) and message.get("content") is not None:
            return message["content"]

    if payload.get("message") is not None:
        return str(payload["message"])

    return NO_REPLY_FALLBACK


class AmplifyProvider(LLMProvider):
    """
    Amplify API を使用するLLMプロバイダー

    特徴:
    - httpx.AsyncClient による非同期 POST
    - {"data": {...}} 形式のリクエストエンベロープ
    - RAG は使用しない（skipRag=true）
    """

    def __init__(
        self,
        config: LLMProviderConfig,
        app_settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config)
        self._settings = app_settings or default_settings
        self._transport = transport

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.AMPLIFY

    async def initialize(self) -> None:
        """接続設定を検証"""
        if self._initialized:
            return

        if not self._settings.amplify_base_url:
            raise ValueError("Amplify configuration missing (base URL)")

        self._initialized = True

    def _build_headers(self) -> Dict[str, str]:
        scheme = self._settings.amplify_auth_scheme or "bearer"
        if scheme != "bearer":
            raise ValueError(f"Unsupported AMPLIFY_AUTH_SCHEME: {scheme}")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._settings.amplify_api_key}",
        }

    def build_payload(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Amplify のリクエストボディを組み立てる"""
        prompt = ""
        for msg in reversed(messages):
            if msg.get("role") == "user":
                prompt = msg.get("content", "")
                break

        return {
            "data": {
                "messages": messages,
                "temperature": self.resolve_temperature(temperature),
                "max_tokens": self.resolve_max_tokens(max_tokens),
                "dataSources": [],
                "options": {
                    "model": {"id": self.config.model},
                    "prompt": prompt,
                    "ragOnly": False,
                    "skipRag": True,
                },
            },
        }

    async def _post_json(self, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = self._build_headers()
        async with httpx.AsyncClient(
            timeout=self._settings.amplify_timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post(url, headers=headers, json=body)

        text = response.text
        try:
            parsed = response.json()
        except ValueError:
            parsed = None

        if not response.is_success:
            if isinstance(parsed, str):
                detail = parsed
            elif parsed is not None:
                detail = json.dumps(parsed, ensure_ascii=False)
            else:
                detail = text
            raise AmplifyAPIError(response.status_code, detail)

        return parsed if isinstance(parsed, dict) else {}

    async def generate_text(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """テキスト生成"""
        if not self._settings.use_amplify:
            return LLMResponse(
                content=AI_DISABLED_REPLY,
                model=self.config.model,
                provider=self.provider_type,
            )

        await self.initialize()

        payload = self.build_payload(messages, temperature, max_tokens)
        raw = await self._post_json(self._settings.amplify_url(), payload)

        return LLMResponse(
            content=extract_reply(raw),
            model=self.config.model,
            provider=self.provider_type,
            raw_response=raw,
        )
