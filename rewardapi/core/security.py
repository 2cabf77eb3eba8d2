"""
호출자 식별

토큰 발급은 이 서비스의 범위가 아니며, 사이트 인증 서버가 발급한 JWT 를 검증만 합니다.
봇 워커는 공유 내부 토큰 헤더로 인증합니다.
"""

import hmac
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from rewardapi.config import settings
from rewardapi.core.exceptions import AuthenticationError, AuthorizationError

# Security scheme
security = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    user_id: int
    is_admin: bool = False


def decode_token(token: str) -> TokenPayload:
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        return TokenPayload.model_validate(payload)
    except (JWTError, ValidationError):
        raise AuthenticationError("Invalid authentication credentials")


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TokenPayload:
    if credentials is None:
        raise AuthenticationError("Missing bearer token")
    return decode_token(credentials.credentials)


def verify_token(identity: TokenPayload = Depends(get_current_identity)) -> int:
    """JWT 토큰을 검증하고 user_id를 반환합니다."""
    return identity.user_id


def require_admin(identity: TokenPayload = Depends(get_current_identity)) -> int:
    """관리자 권한 확인 - 관리자 user_id 반환"""
    if not identity.is_admin:
        raise AuthorizationError("Admin privileges required")
    return identity.user_id


def verify_internal_token(request: Request) -> None:
    """봇 워커 전용 엔드포인트 인증"""
    expected = settings.INTERNAL_AUTH_TOKEN
    provided = request.headers.get(settings.INTERNAL_AUTH_HEADER, "")
    if not expected or not hmac.compare_digest(provided, expected):
        raise AuthenticationError("Invalid internal token")
