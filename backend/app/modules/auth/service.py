import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.modules.auth.deps import ADMIN_ROLE, USER_ROLE, EnsureUtc, NowUtc, _read_int_env, _require_env
from app.modules.auth.models import RefreshToken, User

logger = logging.getLogger("app.auth")

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class AuthError(ValueError):
    pass


class AuthValidationError(AuthError):
    pass


class UsernameTakenError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


class AccountLockedError(AuthError):
    pass


@dataclass
class IssuedTokens:
    AccessToken: str
    RefreshToken: str
    ExpiresIn: int
    User: User


def HashPassword(password: str) -> str:
    return pwd_context.hash(password)


def VerifyPassword(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def CreateAccessToken(user: User) -> tuple[str, int]:
    ttl_minutes = _read_int_env("JWT_ACCESS_TTL_MINUTES", 60)
    now = NowUtc()
    payload = {
        "sub": str(user.Id),
        "username": user.Username,
        "role": user.Role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl_minutes)).timestamp()),
    }
    return jwt.encode(payload, _require_env("JWT_SECRET_KEY"), algorithm="HS256"), ttl_minutes * 60


def HashRefreshToken(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def RegisterUser(db: Session, *, username: str, password: str) -> User:
    """Create an account. The first account on a fresh install becomes the admin."""
    normalized = (username or "").strip()
    if not normalized:
        raise AuthValidationError("Username required")
    if db.query(User).filter(User.Username == normalized).first():
        raise UsernameTakenError("Username already exists")
    min_length = _read_int_env("AUTH_PASSWORD_MIN_LENGTH", 8)
    if len(password or "") < min_length:
        raise AuthValidationError(f"Password must be at least {min_length} characters")

    is_first_user = db.query(User.Id).first() is None
    record = User(
        Username=normalized,
        PasswordHash=HashPassword(password),
        Role=ADMIN_ROLE if is_first_user else USER_ROLE,
        FailedLoginCount=0,
        CreatedAt=NowUtc(),
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise UsernameTakenError("Username already exists") from exc
    db.refresh(record)
    logger.info("user registered user_id=%s role=%s", record.Id, record.Role)
    return record


def _RecordFailedLogin(db: Session, user: User, now: datetime) -> None:
    user.FailedLoginCount = (user.FailedLoginCount or 0) + 1
    if user.FailedLoginCount >= _read_int_env("AUTH_LOGIN_MAX_ATTEMPTS", 5):
        user.LockedUntil = now + timedelta(minutes=_read_int_env("AUTH_LOGIN_LOCKOUT_MINUTES", 15))
        user.FailedLoginCount = 0
        logger.warning("account locked after failed logins user_id=%s", user.Id)
    db.commit()


def AuthenticateUser(db: Session, *, username: str, password: str, now: datetime | None = None) -> User:
    now = now or NowUtc()
    user = db.query(User).filter(User.Username == (username or "").strip()).first()
    if user is None:
        raise InvalidCredentialsError("Invalid credentials")
    locked_until = EnsureUtc(user.LockedUntil)
    if locked_until and locked_until > now:
        raise AccountLockedError("Account locked. Try again later.")
    if not VerifyPassword(password, user.PasswordHash):
        _RecordFailedLogin(db, user, now)
        raise InvalidCredentialsError("Invalid credentials")
    user.FailedLoginCount = 0
    user.LockedUntil = None
    user.LastLoginAt = now
    db.commit()
    return user


def IssueTokens(db: Session, user: User) -> IssuedTokens:
    access_token, expires_in = CreateAccessToken(user)
    refresh_token = secrets.token_urlsafe(48)
    now = NowUtc()
    db.add(
        RefreshToken(
            UserId=user.Id,
            TokenHash=HashRefreshToken(refresh_token),
            CreatedAt=now,
            ExpiresAt=now + timedelta(days=_read_int_env("JWT_REFRESH_TTL_DAYS", 30)),
        )
    )
    db.commit()
    return IssuedTokens(AccessToken=access_token, RefreshToken=refresh_token, ExpiresIn=expires_in, User=user)


def _FindLiveRefreshToken(db: Session, token: str, now: datetime) -> RefreshToken | None:
    record = (
        db.query(RefreshToken)
        .filter(RefreshToken.TokenHash == HashRefreshToken(token or ""), RefreshToken.RevokedAt.is_(None))
        .first()
    )
    if record is None or EnsureUtc(record.ExpiresAt) <= now:
        return None
    return record


def RotateRefreshToken(db: Session, token: str) -> IssuedTokens:
    """Revoke a live refresh token and issue a fresh pair for its owner."""
    now = NowUtc()
    record = _FindLiveRefreshToken(db, token, now)
    if record is None or record.User is None:
        raise InvalidCredentialsError("Invalid refresh token")
    record.RevokedAt = now
    return IssueTokens(db, record.User)


def RevokeRefreshToken(db: Session, *, user_id: int, token: str) -> None:
    record = _FindLiveRefreshToken(db, token, NowUtc())
    if record is None or record.UserId != user_id:
        raise InvalidCredentialsError("Refresh token not found")
    record.RevokedAt = NowUtc()
    db.commit()
