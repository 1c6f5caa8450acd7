import time

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from trashdrop.config import settings
from trashdrop.core.exceptions import AuthenticationError
from trashdrop.core.security import decode_access_token, get_current_user, user_from_claims
from trashdrop.schemas.user import UserRole


def make_token(sub="user-1", role=None, expires_in=3600, secret=None, audience="authenticated"):
    claims = {
        "sub": sub,
        "email": "user@example.com",
        "aud": audience,
        "exp": int(time.time()) + expires_in,
    }
    if role:
        claims["app_metadata"] = {"role": role}
    return jwt.encode(claims, secret or settings.SUPABASE_JWT_SECRET, algorithm="HS256")


class TestTokenVerification:
    """Supabase 토큰 검증 테스트"""

    def test_valid_token(self):
        user = user_from_claims(decode_access_token(make_token(role="collector")))

        assert user.id == "user-1"
        assert user.role == UserRole.COLLECTOR
        assert user.is_collector is True
        assert user.is_admin is False

    def test_default_role_is_user(self):
        user = user_from_claims(decode_access_token(make_token()))
        assert user.role == UserRole.USER

    def test_unknown_role_falls_back_to_user(self):
        user = user_from_claims(decode_access_token(make_token(role="superhero")))
        assert user.role == UserRole.USER

    def test_admin_is_also_collector(self):
        user = user_from_claims(decode_access_token(make_token(role="admin")))
        assert user.is_admin is True
        assert user.is_collector is True

    @pytest.mark.parametrize(
        "token_kwargs",
        [
            {"expires_in": -10},
            {"secret": "wrong-secret"},
            {"audience": "anon"},
        ],
    )
    def test_rejected_tokens(self, token_kwargs):
        with pytest.raises(AuthenticationError):
            decode_access_token(make_token(**token_kwargs))

    def test_missing_subject(self):
        with pytest.raises(AuthenticationError):
            user_from_claims({"email": "x@example.com"})


class TestAuthenticatedRequests:
    def test_missing_token(self, app):
        app.dependency_overrides.pop(get_current_user, None)
        response = TestClient(app).get("/api/v1/points/balance")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_001"

    def test_bearer_token(self, app):
        app.dependency_overrides.pop(get_current_user, None)
        response = TestClient(app).get(
            "/api/v1/points/balance",
            headers={"Authorization": f"Bearer {make_token()}"},
        )

        assert response.status_code == 200
        assert response.json()["balance"] == 0
