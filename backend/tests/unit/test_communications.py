"""
告知文生成テスト（MockLLMProvider 使用）
"""
from __future__ import annotations

import pytest

from program_planner.core.providers.amplify import AmplifyAPIError
from program_planner.schemas.communication import CommunicationRequest, CommunicationType
from program_planner.services.communications import (
    build_communication_prompt,
    character_limit,
    generate_communication,
)
from tests.conftest import build_event


class TestLimits:
    def test_known_limits(self):
        assert character_limit(CommunicationType.TWITTER) == 280
        assert character_limit(CommunicationType.INSTAGRAM) == 2200
        assert character_limit(CommunicationType.LINKEDIN) == 3000

    def test_unlimited_media(self):
        assert character_limit(CommunicationType.EMAIL) is None
        assert character_limit(CommunicationType.FLYER) is None


class TestPrompt:
    def test_includes_event_details_and_limit(self):
        event = build_event(title="Fall Mixer", location={"venue": "Alumni Hall"})
        request = CommunicationRequest(
            communication_type=CommunicationType.TWITTER,
            tone="playful",
            custom_instructions="Mention free pizza",
        )
        prompt = build_communication_prompt(event, request)

        assert "Title: Fall Mixer" in prompt
        assert "Location: Alumni Hall" in prompt
        assert "Tone: playful." in prompt
        assert "at most 280 characters" in prompt
        assert "Additional instructions: Mention free pizza" in prompt

    def test_missing_values(self):
        event = build_event(description=None, location={}, expected_attendance=None)
        prompt = build_communication_prompt(
            event, CommunicationRequest(communication_type=CommunicationType.EMAIL)
        )
        assert "Date: TBD" in prompt
        assert "Location: TBD" in prompt
        assert "characters long" not in prompt


class TestGenerate:
    @pytest.mark.asyncio
    async def test_stores_generated_text(self, mock_llm):
        mock_llm(preset_text="```\nJoin us at the Fall Mixer!\n```")
        event = build_event()

        communication = await generate_communication(
            event,
            CommunicationRequest(communication_type=CommunicationType.TWITTER),
            generated_by="Jane Doe",
        )

        assert communication["content"] == "Join us at the Fall Mixer!"
        assert communication["character_count"] == len("Join us at the Fall Mixer!")
        assert communication["character_limit"] == 280
        assert communication["within_limit"] is True
        assert communication["generated_by"] == "Jane Doe"
        assert event.generated_communications == [communication]

    @pytest.mark.asyncio
    async def test_flags_text_over_limit(self, mock_llm):
        mock_llm(preset_text="x" * 300)
        event = build_event()

        communication = await generate_communication(
            event, CommunicationRequest(communication_type=CommunicationType.TWITTER)
        )

        assert communication["within_limit"] is False
        assert communication["character_count"] == 300

    @pytest.mark.asyncio
    async def test_provider_error_leaves_event_untouched(self, mock_llm):
        mock_llm(error=AmplifyAPIError(500, "boom"))
        event = build_event()

        with pytest.raises(AmplifyAPIError):
            await generate_communication(
                event, CommunicationRequest(communication_type=CommunicationType.EMAIL)
            )
        assert event.generated_communications == []
