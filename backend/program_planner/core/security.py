"""
Program Planner - Security Module
認証トークン・署名・共有トークンの生成と検証
"""
import base64
import hashlib
import hmac
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from program_planner.core.config import settings

logger = logging.getLogger(__name__)

# 共有リンク・コラボレーションIDに使う乱数バイト数（base64url で16文字）
SHARE_TOKEN_BYTES = 12


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """JWTアクセストークンを生成"""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode = {
        "sub": subject,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )


def decode_access_token(token: str) -> Optional[str]:
    """JWTトークンをデコードしてユーザーIDを取得"""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm]
        )
        return payload.get("sub")
    except JWTError:
        return None


def generate_share_token() -> str:
    """URL-safe な共有トークンを生成"""
    return secrets.token_urlsafe(SHARE_TOKEN_BYTES)


def sign_unsubscribe(user_id: str, event_id: str) -> str:
    """
    配信停止リンク用の署名を生成

    HMAC-SHA256("<user_id>|<event_id>") を base64url（パディングなし）で返す。
    """
    data = f"{user_id}|{event_id}".encode("utf-8")
    digest = hmac.new(settings.secret_key.encode("utf-8"), data, hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def verify_unsubscribe(user_id: str, event_id: str, signature: str) -> bool:
    """配信停止リンクの署名を検証"""
    expected = sign_unsubscribe(user_id, event_id)
    return hmac.compare_digest(expected, signature or "")
