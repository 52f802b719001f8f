import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.auth.deps import NowUtc
from app.modules.notifications.models import Notification, NotificationType

logger = logging.getLogger("app.notifications")

TITLE_MAX_LENGTH = 200
BODY_MAX_LENGTH = 500


class NotificationNotFoundError(ValueError):
    pass


def _Clip(value: str | None, length: int) -> str | None:
    if value is None:
        return None
    return value[:length]


def NotifyReminderDue(
    db: Session,
    *,
    user_id: int,
    reminder_id: int,
    note_id: int | None,
    title: str,
    body: str | None,
    due_at: datetime,
    commit: bool = True,
) -> Notification:
    record = Notification(
        UserId=user_id,
        Type=NotificationType.ReminderDue,
        Title=_Clip(title, TITLE_MAX_LENGTH),
        Body=_Clip(body, BODY_MAX_LENGTH),
        NoteId=note_id,
        ReminderId=reminder_id,
        DueAt=due_at,
        IsRead=False,
        IsDismissed=False,
        CreatedAt=NowUtc(),
    )
    db.add(record)
    if commit:
        db.commit()
        db.refresh(record)
    logger.debug("reminder notification queued user_id=%s reminder_id=%s", user_id, reminder_id)
    return record


def _InboxQuery(db: Session, user_id: int):
    return db.query(Notification).filter(
        Notification.UserId == user_id,
        Notification.IsDismissed == False,  # noqa: E712
    )


def ListNotifications(
    db: Session,
    *,
    user_id: int,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Notification]:
    query = _InboxQuery(db, user_id)
    if unread_only:
        query = query.filter(Notification.IsRead == False)  # noqa: E712
    return (
        query.order_by(Notification.CreatedAt.desc(), Notification.Id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def CountUnread(db: Session, *, user_id: int) -> int:
    value = (
        _InboxQuery(db, user_id)
        .filter(Notification.IsRead == False)  # noqa: E712
        .with_entities(func.count(Notification.Id))
        .scalar()
    )
    return int(value or 0)


def _GetOwnedNotification(db: Session, user_id: int, notification_id: int) -> Notification:
    record = (
        db.query(Notification)
        .filter(Notification.Id == notification_id, Notification.UserId == user_id)
        .first()
    )
    if record is None:
        raise NotificationNotFoundError("Notification not found")
    return record


def _StampRead(record: Notification, now: datetime) -> None:
    if not record.IsRead:
        record.IsRead = True
        record.ReadAt = now


def MarkRead(db: Session, *, user_id: int, notification_id: int) -> Notification:
    record = _GetOwnedNotification(db, user_id, notification_id)
    if record.IsRead:
        return record
    _StampRead(record, NowUtc())
    db.commit()
    db.refresh(record)
    return record


def Dismiss(db: Session, *, user_id: int, notification_id: int) -> Notification:
    """Hide a notification from the inbox; dismissing also counts as reading it."""
    record = _GetOwnedNotification(db, user_id, notification_id)
    now = NowUtc()
    _StampRead(record, now)
    record.IsDismissed = True
    record.DismissedAt = now
    db.commit()
    db.refresh(record)
    return record


def MarkAllRead(db: Session, *, user_id: int) -> int:
    now = NowUtc()
    updated = (
        _InboxQuery(db, user_id)
        .filter(Notification.IsRead == False)  # noqa: E712
        .update({Notification.IsRead: True, Notification.ReadAt: now}, synchronize_session=False)
    )
    db.commit()
    return int(updated or 0)
