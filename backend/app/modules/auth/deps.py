import os
from dataclasses import dataclass
from datetime import datetime, timezone

import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.models import User

ADMIN_ROLE = "Admin"
USER_ROLE = "User"
ALLOWED_ROLES = {ADMIN_ROLE, USER_ROLE}


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(f"Missing required env var: {name}")
    return value


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Authentication required")
    return token.strip()


def _token_user_id(token: str) -> int:
    try:
        payload = jwt.decode(token, _require_env("JWT_SECRET_KEY"), algorithms=["HS256"])
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise _unauthorized("Invalid token") from exc


@dataclass
class UserContext:
    Id: int
    Username: str
    Role: str


def RequireAuthenticated(
    request: Request,
    db: Session = Depends(GetDb),
) -> UserContext:
    """Resolve the bearer token to the caller; the role is re-read from the database."""
    user = db.get(User, _token_user_id(_bearer_token(request)))
    if user is None:
        raise _unauthorized("User not found")
    role = user.Role if user.Role in ALLOWED_ROLES else USER_ROLE
    return UserContext(Id=user.Id, Username=user.Username, Role=role)


def NowUtc() -> datetime:
    return datetime.now(tz=timezone.utc)


def EnsureUtc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
