"""
Tests for registration, login, bearer-token access and the own-profile endpoints.

This test suite covers:
- Registration rules (uniqueness, default role)
- Login (token issue, uniform failure message, inactive accounts)
- get_current_user / require_role behaviour
- Profile and password changes
"""

import jwt
import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session

from test_fixtures import (
    client,
    db_session,
    make_user,
    auth_headers,
    assert_error,
    unique_email,
    DEFAULT_PASSWORD,
)
from app.config import settings
from app.security import hash_password, verify_password, decode_access_token
from app.exceptions import UnauthorizedError
from domain.enums import UserRole, UserStatus, has_permission


# =============================================================================
# PERMISSION RANKING
# =============================================================================


@pytest.mark.parametrize(
    "role,required,expected",
    [
        (UserRole.ADMIN, UserRole.ADMIN, True),
        (UserRole.MANAGER, UserRole.ADMIN, False),
        (UserRole.MANAGER, UserRole.OPERATOR, True),
        (UserRole.OPERATOR, UserRole.MANAGER, False),
        (UserRole.OPERATOR, UserRole.VIEWER, True),
        (UserRole.VIEWER, UserRole.OPERATOR, False),
        (UserRole.VIEWER, UserRole.VIEWER, True),
    ],
)
def test_has_permission(role, required, expected):
    assert has_permission(role, required) is expected


def test_password_hash_round_trip():
    hashed = hash_password("matcha-latte")
    assert hashed != "matcha-latte"
    assert verify_password("matcha-latte", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("matcha-latte", "not-a-bcrypt-hash")


def test_decode_rejects_expired_token():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "1", "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1)},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(UnauthorizedError) as exc:
        decode_access_token(token)
    assert exc.value.code == "TOKEN_EXPIRED"


# =============================================================================
# REGISTER / LOGIN
# =============================================================================


def test_register_creates_viewer(db_session: Session):
    """
    Verifies:
    - 201 response without password hash
    - email is normalised to lower case
    - new accounts are active viewers
    """
    response = client.post(
        "/auth/register",
        json={
            "username": "kenji",
            "email": "Kenji.Tanaka@Example.com",
            "password": "hojicha-123",
            "name": "Kenji Tanaka",
        },
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["email"] == "kenji.tanaka@example.com"
    assert body["role"] == "viewer"
    assert body["status"] == "active"
    assert "password_hash" not in body


def test_register_duplicate_email_conflicts(db_session: Session):
    user = make_user(db_session)
    response = client.post(
        "/auth/register",
        json={
            "username": "someone-else",
            "email": user.email,
            "password": "hojicha-123",
            "name": "Someone",
        },
    )
    assert_error(response, 409, "CONFLICT")


def test_register_short_password_rejected(db_session: Session):
    response = client.post(
        "/auth/register",
        json={
            "username": "shorty",
            "email": unique_email(),
            "password": "short",
            "name": "Shorty",
        },
    )
    assert_error(response, 422, "VALIDATION_ERROR")


def test_login_returns_token(db_session: Session):
    user = make_user(db_session, role=UserRole.OPERATOR)
    response = client.post(
        "/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == settings.access_token_expire_minutes * 60
    assert body["user"]["id"] == user.id

    claims = decode_access_token(body["token"])
    assert claims["sub"] == str(user.id)
    assert claims["role"] == "operator"


def test_login_failures_share_message(db_session: Session):
    user = make_user(db_session)
    wrong_password = client.post(
        "/auth/login", json={"email": user.email, "password": "not-the-password"}
    )
    unknown_email = client.post(
        "/auth/login", json={"email": unique_email(), "password": DEFAULT_PASSWORD}
    )
    first = assert_error(wrong_password, 401, "INVALID_CREDENTIALS")
    second = assert_error(unknown_email, 401, "INVALID_CREDENTIALS")
    assert first["message"] == second["message"]
    assert wrong_password.headers["WWW-Authenticate"] == "Bearer"


def test_login_blocked_user_forbidden(db_session: Session):
    user = make_user(db_session, status=UserStatus.BLOCKED)
    response = client.post(
        "/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
    )
    assert_error(response, 403, "FORBIDDEN")


# =============================================================================
# BEARER TOKEN ACCESS
# =============================================================================


def test_profile_requires_token(db_session: Session):
    assert_error(client.get("/auth/profile"), 401, "MISSING_TOKEN")


def test_profile_rejects_garbage_token(db_session: Session):
    response = client.get(
        "/auth/profile", headers={"Authorization": "Bearer not.a.token"}
    )
    assert_error(response, 401, "INVALID_TOKEN")


def test_token_of_deactivated_user_forbidden(db_session: Session):
    user = make_user(db_session)
    headers = auth_headers(user)
    user.status = UserStatus.INACTIVE
    db_session.commit()
    assert_error(client.get("/auth/profile", headers=headers), 403)


def test_viewer_cannot_create_product(db_session: Session):
    viewer = make_user(db_session, role=UserRole.VIEWER)
    response = client.post(
        "/products",
        json={"name": "x", "sku": "X-1", "category": "other", "price": 1},
        headers=auth_headers(viewer),
    )
    error = assert_error(response, 403, "FORBIDDEN")
    assert error["details"] == {"required": "manager", "role": "viewer"}


# =============================================================================
# PROFILE
# =============================================================================


def test_get_and_update_profile(db_session: Session):
    user = make_user(db_session, name="Yui Mori")
    headers = auth_headers(user)

    response = client.get("/auth/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Yui Mori"

    new_email = unique_email("yui")
    response = client.put(
        "/auth/profile", json={"name": "Yui Mori-Ito", "email": new_email}, headers=headers
    )
    assert response.status_code == 200, response.text
    assert response.json()["name"] == "Yui Mori-Ito"
    assert response.json()["email"] == new_email


def test_update_profile_email_taken(db_session: Session):
    other = make_user(db_session)
    user = make_user(db_session)
    response = client.put(
        "/auth/profile", json={"email": other.email}, headers=auth_headers(user)
    )
    assert_error(response, 409)


def test_change_password(db_session: Session):
    user = make_user(db_session)
    headers = auth_headers(user)

    wrong = client.put(
        "/auth/password",
        json={"current_password": "nope-nope", "new_password": "genmaicha-99"},
        headers=headers,
    )
    assert_error(wrong, 400, "SERVICE_VALIDATION_ERROR")

    ok = client.put(
        "/auth/password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "genmaicha-99"},
        headers=headers,
    )
    assert ok.status_code == 200, ok.text

    login = client.post(
        "/auth/login", json={"email": user.email, "password": "genmaicha-99"}
    )
    assert login.status_code == 200
