import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated, UserContext
from app.modules.auth.models import User
from app.modules.auth.schemas import Credentials, RefreshRequest, TokenResponse, UserOut
from app.modules.auth.service import (
    AccountLockedError,
    AuthenticateUser,
    InvalidCredentialsError,
    IssuedTokens,
    IssueTokens,
    RegisterUser,
    RevokeRefreshToken,
    RotateRefreshToken,
    UsernameTakenError,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger("app.auth")


def _handle_auth_error(exc: Exception) -> None:
    detail = str(exc)
    if isinstance(exc, InvalidCredentialsError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail) from exc
    if isinstance(exc, AccountLockedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail) from exc
    if isinstance(exc, UsernameTakenError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail) from exc


def _token_response(issued: IssuedTokens) -> TokenResponse:
    return TokenResponse(
        AccessToken=issued.AccessToken,
        RefreshToken=issued.RefreshToken,
        ExpiresIn=issued.ExpiresIn,
        User=UserOut.model_validate(issued.User),
    )


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def Register(payload: Credentials, db: Session = Depends(GetDb)) -> UserOut:
    try:
        return UserOut.model_validate(RegisterUser(db, username=payload.Username, password=payload.Password))
    except ValueError as exc:
        _handle_auth_error(exc)


@router.post("/login", response_model=TokenResponse)
def Login(payload: Credentials, db: Session = Depends(GetDb)) -> TokenResponse:
    try:
        user = AuthenticateUser(db, username=payload.Username, password=payload.Password)
    except ValueError as exc:
        _handle_auth_error(exc)
    return _token_response(IssueTokens(db, user))


@router.post("/refresh", response_model=TokenResponse)
def Refresh(payload: RefreshRequest, db: Session = Depends(GetDb)) -> TokenResponse:
    try:
        return _token_response(RotateRefreshToken(db, payload.RefreshToken))
    except ValueError as exc:
        _handle_auth_error(exc)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def Logout(
    payload: RefreshRequest,
    user: UserContext = Depends(RequireAuthenticated),
    db: Session = Depends(GetDb),
) -> None:
    try:
        RevokeRefreshToken(db, user_id=user.Id, token=payload.RefreshToken)
    except ValueError as exc:
        _handle_auth_error(exc)
    logger.info("refresh token revoked user_id=%s", user.Id)
    return None


@router.get("/me", response_model=UserOut)
def Me(
    user: UserContext = Depends(RequireAuthenticated),
    db: Session = Depends(GetDb),
) -> UserOut:
    record = db.get(User, user.Id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserOut.model_validate(record)
