"""
Supabase access-token verification.

Sign-up and login happen against Supabase Auth directly; this service only
verifies the HS256 access tokens Supabase issues and turns them into an
AuthenticatedUser. The role is read from `app_metadata.role`.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from trashdrop.config import Settings, settings
from trashdrop.core.exceptions import AuthenticationError, AuthorizationError
from trashdrop.schemas.user import AuthenticatedUser, UserRole

logger = logging.getLogger(__name__)

# JWT Bearer 스킴 - auto_error=False so missing headers get our error envelope
security = HTTPBearer(auto_error=False)


def decode_access_token(token: str, app_settings: Settings = settings) -> Dict[str, Any]:
    """Decode and verify a Supabase access token.

    Raises:
        AuthenticationError: signature, expiry or audience check failed
    """
    if not app_settings.SUPABASE_JWT_SECRET:
        raise AuthenticationError("Token verification is not configured")
    try:
        return jwt.decode(
            token,
            app_settings.SUPABASE_JWT_SECRET,
            algorithms=[app_settings.JWT_ALGORITHM],
            audience=app_settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token", details={"reason": str(e)})


def user_from_claims(claims: Dict[str, Any]) -> AuthenticatedUser:
    user_id = claims.get("sub")
    if not user_id:
        raise AuthenticationError("Token has no subject")

    app_metadata = claims.get("app_metadata") or {}
    raw_role = app_metadata.get("role", UserRole.USER.value)
    try:
        role = UserRole(raw_role)
    except ValueError:
        logger.warning(f"Unknown role '{raw_role}' for user {user_id}, using '{UserRole.USER.value}'")
        role = UserRole.USER

    return AuthenticatedUser(id=str(user_id), email=claims.get("email"), role=role)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthenticatedUser:
    """필수 사용자 인증 - 유효한 토큰이 필요함"""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication required")

    claims = decode_access_token(credentials.credentials)
    return user_from_claims(claims)


def require_collector(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    if not current_user.is_collector:
        raise AuthorizationError("Collector access required")
    return current_user


def require_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """관리자 권한이 필요한 엔드포인트용 의존성"""
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user

