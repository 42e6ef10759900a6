import time
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session
from starlette.requests import Request

import auth
import models
from errors import NotAuthenticatedError
from settings import Settings

AUTH_SETTINGS = Settings(
    auth_enabled=True,
    cognito_user_pool_id="us-east-1_test",
    cognito_app_client_id="client-123",
    aws_region="us-east-1",
)


def _request(headers: dict = None) -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw_headers})


def _payload(email: str) -> auth.TokenPayload:
    return auth.TokenPayload(
        sub=f"sub-{email}",
        email=email,
        name="New Poster",
        exp=int(time.time()) + 3600,
        aud="client-123",
    )


def test_ensure_auth_rejects_anonymous():
    with pytest.raises(NotAuthenticatedError):
        auth.ensure_auth(_request(), None)


def test_ensure_auth_remembers_caller():
    request = _request()
    user = models.User(id=5, email="x@example.com", cognito_sub="sub-x", role=models.Role.USER)

    assert auth.ensure_auth(request, user) is user
    snapshot = request.state.current_user
    assert (snapshot.id, snapshot.email, snapshot.role) == (5, "x@example.com", models.Role.USER)
    assert snapshot is not user


def test_missing_token_is_anonymous(db_session: Session):
    with patch("auth.get_settings", return_value=AUTH_SETTINGS):
        user = auth.get_current_user(_request(), db_session)

    assert user is None


def test_invalid_token_is_anonymous(db_session: Session):
    with patch("auth.get_settings", return_value=AUTH_SETTINGS), \
         patch("auth.verify_token", return_value=None) as mock_verify:
        user = auth.get_current_user(_request({"Authorization": "Bearer bad"}), db_session)

    assert user is None
    mock_verify.assert_called_once_with("bad")


def test_first_login_creates_plain_user(db_session: Session):
    with patch("auth.get_settings", return_value=AUTH_SETTINGS), \
         patch("auth.verify_token", return_value=_payload("new@example.com")):
        user = auth.get_current_user(_request({"Authorization": "Bearer good"}), db_session)

    assert user.email == "new@example.com"
    assert user.display_name == "New Poster"
    assert user.role == models.Role.USER


def test_token_cookie_is_accepted(db_session: Session, make_user):
    existing = make_user(models.Role.MODERATOR, email="mod@example.com")
    request = _request({"Cookie": f"{auth.TOKEN_COOKIE}=cookie-token"})

    with patch("auth.get_settings", return_value=AUTH_SETTINGS), \
         patch("auth.verify_token", return_value=_payload("mod@example.com")) as mock_verify:
        user = auth.get_current_user(request, db_session)

    mock_verify.assert_called_once_with("cookie-token")
    assert user.id == existing.id
    assert user.role == models.Role.MODERATOR
