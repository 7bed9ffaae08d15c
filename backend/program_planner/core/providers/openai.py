"""
Program Planner - OpenAI Provider
Amplify を使わない環境向けに OpenAI API へ直接問い合わせる
"""
from typing import Optional

from openai import AsyncOpenAI

from program_planner.core.llm_provider import (
    LLMProvider,
    LLMProviderConfig,
    LLMResponse,
    ProviderType,
)


class OpenAIProvider(LLMProvider):
    """llm_config_<role> に {"provider": "openai"} を指定したときに使われる"""

    def __init__(
        self,
        config: LLMProviderConfig,
        api_key: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        super().__init__(config)
        self._api_key = api_key
        self._client = client

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.OPENAI

    async def initialize(self) -> None:
        if self._initialized:
            return
        if self._client is None:
            if not self._api_key:
                raise ValueError("OpenAI API key is not configured")
            self._client = AsyncOpenAI(api_key=self._api_key)
        self._initialized = True

    async def generate_text(self, messages, temperature=None, max_tokens=None) -> LLMResponse:
        await self.initialize()

        response = await self._client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=self.resolve_temperature(temperature),
            max_tokens=self.resolve_max_tokens(max_tokens),
        )

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=self.config.model,
            provider=self.provider_type,
            usage=usage,
        )
