from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.modules.auth.deps import EnsureUtc, NowUtc, UserContext
from app.modules.notes.models import Note, Reminder
from app.modules.notes.services.common import (
    GetOwnedNote,
    GetOwnedReminder,
    NormalizeName,
    NotesAccessError,
    NotesValidationError,
)
from app.modules.notes.utils.rbac import CanRunReminders
from app.modules.notifications.services import NotifyReminderDue
from app.services.schedules import AddMonths, AddYears

logger = logging.getLogger("app.reminders")

REPEAT_TYPES = ("none", "daily", "weekly", "monthly", "yearly", "weekdays", "weekends")
DEFAULT_LEAD_TIME = timedelta(hours=1)
UPCOMING_WINDOW = timedelta(hours=24)
SATURDAY = 5
SUNDAY = 6
_UNSET = object()


@dataclass
class ReminderRunResult:
    Processed: int = 0
    NotificationsSent: int = 0
    Rescheduled: int = 0
    Deactivated: int = 0
    Errors: int = 0


def NormalizeRepeatType(value: str | None) -> str:
    normalized = (value or "none").strip().lower()
    return normalized if normalized in REPEAT_TYPES else "none"


def NextReminderDate(repeat_type: str | None, after: datetime) -> datetime | None:
    normalized = NormalizeRepeatType(repeat_type)
    if normalized == "none":
        return None
    if normalized == "daily":
        return after + timedelta(days=1)
    if normalized == "weekly":
        return after + timedelta(days=7)
    if normalized == "monthly":
        return AddMonths(after, 1)
    if normalized == "yearly":
        return AddYears(after, 1)
    candidate = after + timedelta(days=1)
    if normalized == "weekdays":
        if candidate.weekday() == SATURDAY:
            return candidate + timedelta(days=2)
        if candidate.weekday() == SUNDAY:
            return candidate + timedelta(days=1)
        return candidate
    # weekends
    if candidate.weekday() < SATURDAY:
        return candidate + timedelta(days=SATURDAY - candidate.weekday())
    return candidate


def IsOverdue(reminder: Reminder, now: datetime) -> bool:
    return bool(reminder.IsActive) and EnsureUtc(reminder.ReminderAt) < now


def FormatTimeRemaining(reminder_at: datetime, now: datetime) -> str:
    delta = EnsureUtc(reminder_at) - now
    seconds = int(delta.total_seconds())
    if seconds < 0:
        return "overdue"
    days, remainder = divmod(seconds, 86400)
    if days:
        return f"in {days} day{'s' if days != 1 else ''}"
    hours = remainder // 3600
    if hours:
        return f"in {hours} hour{'s' if hours != 1 else ''}"
    minutes = remainder // 60
    if minutes:
        return f"in {minutes} minute{'s' if minutes != 1 else ''}"
    return "due now"


def _OwnerRemindersQuery(db: Session, user: UserContext):
    return db.query(Reminder).filter(Reminder.OwnerUserId == user.Id)


def CreateReminder(
    db: Session,
    user: UserContext,
    *,
    note_id: int,
    title: str,
    reminder_at: datetime | None = None,
    repeat_type: str | None = None,
) -> Reminder:
    note = GetOwnedNote(db, user, note_id)
    normalized_title = NormalizeName(title)
    if not normalized_title:
        raise NotesValidationError("Reminder title is required")
    now = NowUtc()
    record = Reminder(
        OwnerUserId=user.Id,
        NoteId=note.Id,
        Title=normalized_title,
        ReminderAt=EnsureUtc(reminder_at) if reminder_at else now + DEFAULT_LEAD_TIME,
        IsActive=True,
        RepeatType=NormalizeRepeatType(repeat_type),
        CreatedAt=now,
        UpdatedAt=now,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("reminder created reminder_id=%s note_id=%s repeat=%s", record.Id, note.Id, record.RepeatType)
    return record


def UpdateReminder(
    db: Session,
    user: UserContext,
    reminder_id: int,
    *,
    title=_UNSET,
    reminder_at=_UNSET,
    is_active=_UNSET,
    repeat_type=_UNSET,
) -> Reminder:
    record = GetOwnedReminder(db, user, reminder_id)
    if title is not _UNSET:
        normalized_title = NormalizeName(title)
        if not normalized_title:
            raise NotesValidationError("Reminder title is required")
        record.Title = normalized_title
    if reminder_at is not _UNSET and reminder_at is not None:
        record.ReminderAt = EnsureUtc(reminder_at)
        record.LastTriggeredAt = None
    if is_active is not _UNSET and is_active is not None:
        record.IsActive = bool(is_active)
    if repeat_type is not _UNSET:
        record.RepeatType = NormalizeRepeatType(repeat_type)
    record.UpdatedAt = NowUtc()
    db.commit()
    db.refresh(record)
    return record


def DeleteReminder(db: Session, user: UserContext, reminder_id: int) -> None:
    record = GetOwnedReminder(db, user, reminder_id)
    db.delete(record)
    db.commit()


def ListRemindersForNote(db: Session, user: UserContext, note_id: int) -> list[Reminder]:
    note = GetOwnedNote(db, user, note_id)
    return (
        _OwnerRemindersQuery(db, user)
        .filter(Reminder.NoteId == note.Id)
        .order_by(Reminder.ReminderAt.asc(), Reminder.Id.asc())
        .all()
    )


def ListActiveReminders(db: Session, user: UserContext) -> list[Reminder]:
    return (
        _OwnerRemindersQuery(db, user)
        .filter(Reminder.IsActive == True)  # noqa: E712
        .order_by(Reminder.ReminderAt.asc(), Reminder.Id.asc())
        .all()
    )


def ListUpcomingReminders(db: Session, user: UserContext, now: datetime | None = None) -> list[Reminder]:
    now = now or NowUtc()
    return (
        _OwnerRemindersQuery(db, user)
        .filter(
            Reminder.IsActive == True,  # noqa: E712
            Reminder.ReminderAt >= now,
            Reminder.ReminderAt <= now + UPCOMING_WINDOW,
        )
        .order_by(Reminder.ReminderAt.asc(), Reminder.Id.asc())
        .all()
    )


def ListOverdueReminders(db: Session, user: UserContext, now: datetime | None = None) -> list[Reminder]:
    now = now or NowUtc()
    return (
        _OwnerRemindersQuery(db, user)
        .filter(
            Reminder.IsActive == True,  # noqa: E712
            Reminder.ReminderAt < now,
        )
        .order_by(Reminder.ReminderAt.asc(), Reminder.Id.asc())
        .all()
    )


def AdvanceReminder(record: Reminder, now: datetime) -> bool:
    """Move a repeating reminder to its next future date; deactivate a one-off."""
    current = EnsureUtc(record.ReminderAt)
    next_date = NextReminderDate(record.RepeatType, current)
    if next_date is None:
        record.IsActive = False
        return False
    while next_date <= now:
        next_date = NextReminderDate(record.RepeatType, next_date)
    record.ReminderAt = next_date
    return True


def _FireReminder(db: Session, record: Reminder, note: Note | None, now: datetime) -> bool:
    NotifyReminderDue(
        db,
        user_id=record.OwnerUserId,
        reminder_id=record.Id,
        note_id=note.Id if note else None,
        title=record.Title,
        body=note.Title if note else None,
        due_at=EnsureUtc(record.ReminderAt),
        commit=False,
    )
    record.LastTriggeredAt = now
    record.UpdatedAt = now
    rescheduled = AdvanceReminder(record, now)
    db.commit()
    return rescheduled


def RunDueReminders(
    db: Session,
    user: UserContext,
    *,
    now: datetime | None = None,
    limit: int = 500,
) -> ReminderRunResult:
    if not CanRunReminders(user):
        raise NotesAccessError("Access denied")
    now = now or NowUtc()
    due = (
        db.query(Reminder)
        .outerjoin(Note, Reminder.NoteId == Note.Id)
        .filter(
            Reminder.IsActive == True,  # noqa: E712
            Reminder.ReminderAt <= now,
            or_(Reminder.NoteId.is_(None), Note.IsInTrash == False),  # noqa: E712
            or_(Reminder.LastTriggeredAt.is_(None), Reminder.LastTriggeredAt < Reminder.ReminderAt),
        )
        .order_by(Reminder.ReminderAt.asc(), Reminder.Id.asc())
        .limit(limit)
        .all()
    )

    result = ReminderRunResult()
    for record in due:
        note = record.Note
        result.Processed += 1
        reminder_id = record.Id
        try:
            rescheduled = _FireReminder(db, record, note, now)
        except Exception:  # noqa: BLE001
            db.rollback()
            logger.exception("failed to fire reminder reminder_id=%s", reminder_id)
            result.Errors += 1
            continue
        result.NotificationsSent += 1
        if rescheduled:
            result.Rescheduled += 1
        else:
            result.Deactivated += 1

    logger.info(
        "reminder run complete processed=%s sent=%s rescheduled=%s deactivated=%s errors=%s",
        result.Processed,
        result.NotificationsSent,
        result.Rescheduled,
        result.Deactivated,
        result.Errors,
    )
    return result
