"""Authentication helpers integrating AWS Cognito JWTs.

This module provides the FastAPI dependencies ``get_current_user`` and
``ensure_auth``:
1. The ID token is read from the ``Authorization: Bearer <id_token>`` header,
   or from the ``id_token`` cookie set by the login page for browser sessions.
2. The JSON Web Key Set (JWKS) for the Cognito User Pool is downloaded once
   and cached.
3. Signature, expiration, issuer and audience are verified.
4. A ``models.User`` row is fetched or created on-the-fly (role ``User``).

``get_current_user`` returns ``None`` for anonymous callers; ``ensure_auth``
turns that into ``NotAuthenticatedError`` which the app answers with a
redirect to the landing page.

Settings (see ``settings.py``):
    AUTH_ENABLED             - false in local development
    COGNITO_USER_POOL_ID     - e.g. "us-east-1_abcd1234"
    COGNITO_APP_CLIENT_ID    - the user-pool client facing ID (audience)
    AWS_REGION               - pool region (falls back to us-east-1)
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

import httpx
import structlog
from fastapi import Depends, Request
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

import crud
import models
import schemas
from database import get_db
from errors import NotAuthenticatedError
from settings import get_settings

logger = structlog.get_logger(__name__)

TOKEN_COOKIE = "id_token"


class TokenPayload(BaseModel):
    sub: str
    email: Optional[str] = None
    name: Optional[str] = None
    exp: int
    aud: str


class AuthSettings(BaseModel):
    region: str
    user_pool_id: str
    client_id: str

    @property
    def issuer(self) -> str:  # cognito issuer URL
        return f"https://cognito-idp.{self.region}.amazonaws.com/{self.user_pool_id}"

    @property
    def jwks_url(self) -> str:
        return f"{self.issuer}/.well-known/jwks.json"


@lru_cache
def _load_settings() -> AuthSettings:
    settings = get_settings()
    if not settings.cognito_user_pool_id or not settings.cognito_app_client_id:
        raise RuntimeError("Cognito pool and client id must be set when auth is enabled")
    return AuthSettings(
        region=settings.aws_region or "us-east-1",
        user_pool_id=settings.cognito_user_pool_id,
        client_id=settings.cognito_app_client_id,
    )


@lru_cache
def _get_jwks():
    settings = _load_settings()
    logger.info("Fetching JWKS", jwks_url=settings.jwks_url)
    resp = httpx.get(settings.jwks_url, timeout=10)
    resp.raise_for_status()
    return resp.json()


def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify a Cognito ID token; ``None`` when it is invalid or expired."""
    settings = _load_settings()
    jwks = _get_jwks()

    try:
        payload = jwt.decode(
            token,
            jwks,
            algorithms=["RS256"],
            audience=settings.client_id,
            issuer=settings.issuer,
            options={"verify_at_hash": False},
        )
        return TokenPayload.model_validate(payload)
    except JWTError as exc:
        logger.warning("JWT verification failed", exc=str(exc))
        return None


def _extract_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1]
    return request.cookies.get(TOKEN_COOKIE)


def _get_local_user(db: Session) -> models.User:
    settings = get_settings()
    user = crud.get_user_by_email(db, settings.local_user_email)
    if not user:
        user = crud.create_user(
            db,
            schemas.UserCreate(
                email=settings.local_user_email,
                cognito_sub="local-dev",
                display_name="Local User",
                role=models.Role(settings.local_user_role),
            ),
        )
        db.commit()
    return user


# --- FastAPI dependencies ---
def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[models.User]:
    if not get_settings().auth_enabled:
        # Local dev: always return / create a default user
        return _get_local_user(db)

    token = _extract_token(request)
    if not token:
        return None

    payload = verify_token(token)
    if payload is None:
        return None

    # Upsert user in DB
    email = payload.email or payload.sub
    user = crud.get_user_by_email(db, email)
    if not user:
        user = crud.create_user(
            db,
            schemas.UserCreate(email=email, cognito_sub=payload.sub, display_name=payload.name),
        )
        db.commit()
        logger.info("Created user on first login", user_id=user.id)
    return user


def ensure_auth(
    request: Request,
    current_user: Optional[models.User] = Depends(get_current_user),
) -> models.User:
    if current_user is None:
        raise NotAuthenticatedError("login required")
    # Error pages are rendered after the session is rolled back and closed,
    # so they get a detached copy rather than the ORM row
    request.state.current_user = schemas.CurrentUser.model_validate(current_user)
    return current_user
