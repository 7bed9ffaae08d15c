"""
Program Planner バックエンド - 共通テストフィクスチャ

設計方針:
- LLMプロバイダーをモック化し、外部API（Amplify/OpenAI）を一切呼び出さない
- DB を使わず、ORM オブジェクトを直接組み立てて各サービスの挙動を検証する
- API テストは依存関係のオーバーライドで認証・セッションを差し替える
"""
from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import patch

import pytest

from program_planner.core.llm_provider import (
    LLMProvider,
    LLMProviderConfig,
    LLMResponse,
    ProviderType,
)
from program_planner.models.event import Event, default_notifications
from program_planner.models.policy import Policy
from program_planner.models.program_plan import ProgramPlan
from program_planner.models.user import User


# =============================================================================
# MockLLMProvider
# テスト用の LLMProvider 実装。外部 API を一切呼び出さず、
# プリセットされたテキスト（または JSON）を返す。
# =============================================================================

class MockLLMProvider(LLMProvider):
    """
    外部 API を呼び出さないテスト専用 LLMProvider。

    - `preset_text`: generate_text() が返すテキスト
    - `preset_json`: 指定時は JSON 文字列化して返す
    - `error`: 指定時は generate_text() でこの例外を送出する
    - `call_count`: 呼び出し回数（テスト内で検証可能）
    - `last_messages`: 最後に受け取ったメッセージリスト
    """

    def __init__(
        self,
        preset_text: str = "",
        preset_json: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
    ):
        config = LLMProviderConfig(
            provider=ProviderType.AMPLIFY,
            model="mock-amplify-test",
        )
        super().__init__(config)
        self._preset_text = json.dumps(preset_json) if preset_json is not None else preset_text
        self._error = error
        self.call_count: int = 0
        self.last_messages: List[Dict[str, str]] = []

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.AMPLIFY

    async def initialize(self) -> None:
        """初期化は no-op"""
        self._initialized = True

    async def generate_text(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        self.call_count += 1
        self.last_messages = messages
        if self._error is not None:
            raise self._error
        return LLMResponse(
            content=self._preset_text,
            model="mock-amplify-test",
            provider=ProviderType.AMPLIFY,
        )


@pytest.fixture
def mock_llm():
    """
    llm_manager.get_client をパッチして MockLLMProvider を返すファクトリー。

    使用例:
        provider = mock_llm(preset_text="Hello")
        provider = mock_llm(error=AmplifyAPIError(500, "boom"))
    """
    patchers = []

    def _factory(**kwargs) -> MockLLMProvider:
        provider = MockLLMProvider(**kwargs)
        patcher = patch(
            "program_planner.core.llm.llm_manager.get_client",
            return_value=provider,
        )
        patcher.start()
        patchers.append(patcher)
        return provider

    yield _factory

    for patcher in reversed(patchers):
        patcher.stop()


# =============================================================================
# ORM オブジェクトのファクトリー
# DB を経由しないため、列のデフォルト値はここで明示的に設定する。
# =============================================================================

def _now() -> datetime:
    return datetime.now(timezone.utc)


def build_user(**overrides: Any) -> User:
    values: Dict[str, Any] = {
        "id": uuid.uuid4(),
        "vanderbilt_id": "doej1",
        "email": "jane.doe@vanderbilt.edu",
        "first_name": "Jane",
        "last_name": "Doe",
        "role": "student",
        "department": None,
        "created_at": _now(),
        "updated_at": _now(),
    }
    values.update(overrides)
    return User(**values)


def build_event(**overrides: Any) -> Event:
    owner_id = overrides.get("user_id", uuid.uuid4())
    values: Dict[str, Any] = {
        "id": uuid.uuid4(),
        "user_id": owner_id,
        "owner_id": owner_id,
        "plan_id": None,
        "title": "Fall Mixer",
        "description": "Welcome mixer for new members",
        "event_date": None,
        "category": "other",
        "priority": "medium",
        "status": "pending",
        "expected_attendance": 50,
        "location": {"type": "on-campus", "venue": "Alumni Hall"},
        "budget": {"amount": 500, "currency": "USD"},
        "has_alcohol": False,
        "requires_av": False,
        "catering_required": False,
        "potentially_controversial": False,
        "event_type": "mixer",
        "checklist": [],
        "timeline": [],
        "source_message": None,
        "notes": None,
        "notifications": default_notifications(),
        "share_id": None,
        "share_enabled": False,
        "share_created_at": None,
        "collaboration_enabled": False,
        "collaboration_id": None,
        "collaborators": [],
        "activity_log": [],
        "generated_communications": [],
        "created_at": _now(),
        "updated_at": _now(),
    }
    values.update(overrides)
    return Event(**values)


def build_policy(**overrides: Any) -> Policy:
    values: Dict[str, Any] = {
        "id": uuid.uuid4(),
        "category": "Space Booking",
        "title": "Reserve University Space",
        "description": "Spaces must be reserved.",
        "requirements": ["Reserve via EMS."],
        "citations": ["https://example.edu/space"],
        "tags": [],
        "timeline": {},
        "role_visibility": "both",
        "program_types": [],
        "severity": "info",
        "created_at": _now(),
        "updated_at": _now(),
    }
    values.update(overrides)
    return Policy(**values)


def build_plan(**overrides: Any) -> ProgramPlan:
    values: Dict[str, Any] = {
        "id": uuid.uuid4(),
        "user_id": uuid.uuid4(),
        "title": "Spring Concert",
        "program_type": "concert",
        "location": {"type": "on-campus", "venue": "Langford Auditorium"},
        "has_alcohol": False,
        "expected_attendance": 200,
        "budget": {"currency": "USD"},
        "timeline": {},
        "checklist": [],
        "conversation_history": [],
        "status": "planning",
        "created_at": _now(),
        "updated_at": _now(),
    }
    values.update(overrides)
    return ProgramPlan(**values)


@pytest.fixture
def user() -> User:
    return build_user()


@pytest.fixture
def event(user) -> Event:
    return build_event(user_id=user.id, owner_id=user.id)


# =============================================================================
# API テスト用の疑似セッション
# =============================================================================

class FakeResult:
    def __init__(self, items: List[Any]):
        self._items = items

    def scalars(self) -> "FakeResult":
        return self

    def all(self) -> List[Any]:
        return list(self._items)

    def scalar_one_or_none(self) -> Any:
        return self._items[0] if self._items else None


class FakeSession:
    """
    AsyncSession の代わりに使う最小限の疑似セッション。

    - get(): objects に登録された主キーから取得
    - execute(): results に積まれた結果を順に返す（空なら空の結果）
    """

    def __init__(self, objects: Optional[List[Any]] = None, results: Optional[List[List[Any]]] = None):
        self.objects = {getattr(o, "id"): o for o in (objects or [])}
        self.results = list(results or [])
        self.added: List[Any] = []
        self.deleted: List[Any] = []
        self.commits = 0

    async def get(self, model, ident):
        obj = self.objects.get(ident)
        return obj if isinstance(obj, model) else None

    async def execute(self, statement):
        return FakeResult(self.results.pop(0) if self.results else [])

    def add(self, obj):
        self.added.append(obj)

    async def delete(self, obj):
        self.deleted.append(obj)

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        pass

    async def refresh(self, obj):
        pass

    async def close(self):
        pass
