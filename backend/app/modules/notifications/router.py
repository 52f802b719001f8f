import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated, UserContext
from app.modules.notifications.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationOut,
    UnreadCountResponse,
)
from app.modules.notifications.services import (
    CountUnread,
    Dismiss,
    ListNotifications,
    MarkAllRead,
    MarkRead,
    NotificationNotFoundError,
)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])
logger = logging.getLogger("app.notifications")


def _handle_db_error(exc: Exception) -> None:
    logger.exception("notifications database error")
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Notifications storage not initialized. Run alembic upgrade head.",
    ) from exc


def _not_found(exc: NotificationNotFoundError) -> None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("", response_model=NotificationListResponse)
def ListInbox(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NotificationListResponse:
    try:
        records = ListNotifications(db, user_id=user.Id, unread_only=unread_only, limit=limit, offset=offset)
        return NotificationListResponse(
            Notifications=[NotificationOut.model_validate(record) for record in records],
            UnreadCount=CountUnread(db, user_id=user.Id),
        )
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.get("/unread-count", response_model=UnreadCountResponse)
def UnreadCount(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> UnreadCountResponse:
    try:
        return UnreadCountResponse(UnreadCount=CountUnread(db, user_id=user.Id))
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.post("/read-all", response_model=MarkAllReadResponse)
def MarkAllReadRoute(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> MarkAllReadResponse:
    try:
        return MarkAllReadResponse(Updated=MarkAllRead(db, user_id=user.Id))
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.post("/{notification_id}/read", response_model=NotificationOut)
def MarkReadRoute(
    notification_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NotificationOut:
    try:
        return NotificationOut.model_validate(MarkRead(db, user_id=user.Id, notification_id=notification_id))
    except NotificationNotFoundError as exc:
        _not_found(exc)


@router.post("/{notification_id}/dismiss", response_model=NotificationOut)
def DismissRoute(
    notification_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NotificationOut:
    try:
        return NotificationOut.model_validate(Dismiss(db, user_id=user.Id, notification_id=notification_id))
    except NotificationNotFoundError as exc:
        _not_found(exc)
