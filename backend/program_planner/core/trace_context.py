"""
Program Planner - Request Trace Context
contextvars を使用したリクエストスコープの trace_id 管理
"""
import re
import uuid
from contextvars import ContextVar
from typing import Optional

# リクエストスコープで共有される trace_id
_trace_id_var: ContextVar[str] = ContextVar("trace_id", default="no-trace")

# クライアントから受け取る trace_id として許可する形式
_TRACE_ID_PATTERN = re.compile(r"^[A-Za-z0-9\-]{8,64}$")


def get_trace_id() -> str:
    """現在のリクエストスコープの trace_id を取得"""
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """現在のリクエストスコープに trace_id を設定"""
    _trace_id_var.set(trace_id)


def generate_trace_id(incoming: Optional[str] = None) -> str:
    """
    trace_id を設定して返す

    フロントエンドが X-Trace-ID を付与している場合はそれを引き継ぎ、
    なければ新しく生成する。
    """
    if incoming and _TRACE_ID_PATTERN.match(incoming):
        trace_id = incoming
    else:
        trace_id = uuid.uuid4().hex[:12]
    set_trace_id(trace_id)
    return trace_id
