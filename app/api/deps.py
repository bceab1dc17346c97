"""FastAPI 의존성 주입 모듈 — 인증 및 역할 검사.

FastAPI dependency injection module — Authentication and role checks.
Tokens are issued by the external auth service; this module only verifies
them and resolves the caller into a ``Principal``.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    3. 페이로드의 "sub" 필드로 DB에서 사용자를 조회
       (User is fetched from DB using payload "sub" field)
    4. 사용자 활성 상태를 확인 후 Principal로 변환
       (Active user is converted into a Principal)
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.constants import Role
from app.models.user import User
from app.schemas.auth import Principal
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — auto_error=False: 헤더 누락도 401로 통일
# (Missing header is reported as 401 UNAUTHORIZED like any other bad token)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode JWT from the Authorization header and return the authenticated user.

    Raises:
        UnauthorizedError: 토큰 누락/무효/만료, 사용자 없음 또는 비활성
            (Missing, invalid or expired token; unknown or inactive user)
    """
    if credentials is None:
        raise UnauthorizedError("Missing bearer token")

    try:
        payload: dict = decode_token(credentials.credentials)
        # 토큰 타입 검증 — Reject refresh tokens used as access tokens
        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type")
        user_id = UUID(str(payload["sub"]))
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise UnauthorizedError("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_id))
    user: User | None = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")

    return user


async def get_principal(
    current_user: Annotated[User, Depends(get_current_user)],
) -> Principal:
    """인증된 사용자를 서비스 계층용 Principal로 변환합니다."""
    return Principal(id=current_user.id, role=current_user.role, factory_id=current_user.factory_id)


def require_roles(*roles: str) -> Callable[..., Awaitable[Principal]]:
    """역할 기반 권한 검사 의존성 팩토리.

    Dependency factory allowing only the given roles.

    Args:
        roles: 허용 역할 목록 (Allowed roles)

    Returns:
        FastAPI 의존성 함수 — Principal 반환 또는 403 발생
        (Dependency returning the Principal or raising 403)
    """
    async def _check(
        principal: Annotated[Principal, Depends(get_principal)],
    ) -> Principal:
        if principal.role not in roles:
            raise ForbiddenError("Insufficient permissions", role=principal.role)
        return principal
    return _check


# 편의 의존성 — Pre-configured role dependencies
require_admin = require_roles(Role.SUPER_ADMIN, Role.FACTORY_ADMIN)
