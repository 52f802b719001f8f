import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import NowUtc, RequireAuthenticated, UserContext
from app.modules.notes.routes.common import _BuildReminderOut, _handle_db_error, _handle_notes_error
from app.modules.notes.schemas import (
    ReminderCreate,
    ReminderOut,
    ReminderRunResponse,
    ReminderUpdate,
    ReminderView,
)
from app.modules.notes.services.reminders_service import (
    CreateReminder,
    DeleteReminder,
    ListActiveReminders,
    ListOverdueReminders,
    ListRemindersForNote,
    ListUpcomingReminders,
    RunDueReminders,
    UpdateReminder,
)

router = APIRouter()
logger = logging.getLogger("app.notes.reminders")


@router.get("/reminders", response_model=list[ReminderOut])
def ListRemindersRoute(
    view: ReminderView = Query(default=ReminderView.Active),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[ReminderOut]:
    now = NowUtc()
    try:
        if view == ReminderView.Upcoming:
            records = ListUpcomingReminders(db, user, now)
        elif view == ReminderView.Overdue:
            records = ListOverdueReminders(db, user, now)
        else:
            records = ListActiveReminders(db, user)
        return [_BuildReminderOut(record, now) for record in records]
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.post("/reminders/run", response_model=ReminderRunResponse)
def RunRemindersRoute(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> ReminderRunResponse:
    try:
        result = RunDueReminders(db, user)
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)
    logger.info("reminder run requested by user_id=%s processed=%s", user.Id, result.Processed)
    return ReminderRunResponse(
        Processed=result.Processed,
        NotificationsSent=result.NotificationsSent,
        Rescheduled=result.Rescheduled,
        Deactivated=result.Deactivated,
        Errors=result.Errors,
    )


@router.patch("/reminders/{reminder_id}", response_model=ReminderOut)
def UpdateReminderRoute(
    reminder_id: int,
    payload: ReminderUpdate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> ReminderOut:
    fields = payload.model_dump(exclude_unset=True)
    changes = {}
    if "Title" in fields:
        changes["title"] = fields["Title"]
    if "ReminderAt" in fields:
        changes["reminder_at"] = fields["ReminderAt"]
    if "IsActive" in fields:
        changes["is_active"] = fields["IsActive"]
    if "RepeatType" in fields:
        repeat_type = fields["RepeatType"]
        changes["repeat_type"] = repeat_type.value if repeat_type else None
    try:
        record = UpdateReminder(db, user, reminder_id, **changes)
        return _BuildReminderOut(record, NowUtc())
    except ValueError as exc:
        _handle_notes_error(exc)


@router.delete("/reminders/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def DeleteReminderRoute(
    reminder_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> None:
    try:
        DeleteReminder(db, user, reminder_id)
    except ValueError as exc:
        _handle_notes_error(exc)
    return None


@router.get("/notes/{note_id}/reminders", response_model=list[ReminderOut])
def ListNoteReminders(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[ReminderOut]:
    now = NowUtc()
    try:
        return [_BuildReminderOut(record, now) for record in ListRemindersForNote(db, user, note_id)]
    except ValueError as exc:
        _handle_notes_error(exc)


@router.post("/notes/{note_id}/reminders", response_model=ReminderOut, status_code=status.HTTP_201_CREATED)
def CreateNoteReminder(
    note_id: int,
    payload: ReminderCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> ReminderOut:
    try:
        record = CreateReminder(
            db,
            user,
            note_id=note_id,
            title=payload.Title,
            reminder_at=payload.ReminderAt,
            repeat_type=payload.RepeatType.value,
        )
        return _BuildReminderOut(record, NowUtc())
    except ValueError as exc:
        _handle_notes_error(exc)
