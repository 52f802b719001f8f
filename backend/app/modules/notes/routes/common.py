import logging
from datetime import datetime

from fastapi import HTTPException, UploadFile, status

from app.modules.auth.deps import EnsureUtc
from app.modules.notes.image_storage import ImageTooLargeError, UnsupportedImageError
from app.modules.notes.models import Note, Reminder, Tag
from app.modules.notes.schemas import (
    FolderOut,
    NoteDetailOut,
    NoteImageOut,
    NoteOut,
    ReminderOut,
    ReminderRepeatType,
    TagOut,
)
from app.modules.notes.services.common import NotesAccessError, NotesNotFoundError
from app.modules.notes.services.folders_service import FolderSummary
from app.modules.notes.services.ocr_service import OcrError
from app.modules.notes.services.reminders_service import (
    FormatTimeRemaining,
    IsOverdue,
    NextReminderDate,
    NormalizeRepeatType,
)

logger = logging.getLogger("app.notes")


def _handle_db_error(exc: Exception) -> None:
    logger.exception("notes database error")
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Notes storage not initialized. Run alembic upgrade head.",
    ) from exc


def _handle_notes_error(exc: Exception) -> None:
    detail = str(exc)
    if isinstance(exc, NotesNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail) from exc
    if isinstance(exc, NotesAccessError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail) from exc
    if isinstance(exc, ImageTooLargeError):
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=detail) from exc
    if isinstance(exc, UnsupportedImageError):
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=detail) from exc
    if isinstance(exc, OcrError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail) from exc


def _BuildFolderOut(summary: FolderSummary) -> FolderOut:
    folder = summary.Folder
    return FolderOut(
        Id=folder.Id,
        Name=folder.Name,
        ParentFolderId=folder.ParentFolderId,
        IsRoot=folder.ParentFolderId is None,
        FullPath=summary.FullPath,
        IsInTrash=bool(folder.IsInTrash),
        ChildCount=summary.ChildCount,
        NoteCount=summary.NoteCount,
        CreatedAt=folder.CreatedAt,
        UpdatedAt=folder.UpdatedAt,
    )


def _BuildNoteOut(note: Note) -> NoteOut:
    return NoteOut(
        Id=note.Id,
        FolderId=note.FolderId,
        Title=note.Title,
        Content=note.Content or "",
        HasRichContent=note.RichContent is not None,
        IsInTrash=bool(note.IsInTrash),
        CreatedAt=note.CreatedAt,
        UpdatedAt=note.UpdatedAt,
    )


def _BuildTagOut(tag: Tag, note_count: int | None = None) -> TagOut:
    return TagOut(Id=tag.Id, Name=tag.Name, NoteCount=note_count, CreatedAt=tag.CreatedAt)


def _BuildReminderOut(record: Reminder, now: datetime) -> ReminderOut:
    repeat_type = NormalizeRepeatType(record.RepeatType)
    reminder_at = EnsureUtc(record.ReminderAt)
    return ReminderOut(
        Id=record.Id,
        NoteId=record.NoteId,
        NoteTitle=record.Note.Title if record.Note else None,
        Title=record.Title,
        ReminderAt=reminder_at,
        IsActive=bool(record.IsActive),
        RepeatType=ReminderRepeatType(repeat_type),
        IsOverdue=IsOverdue(record, now),
        TimeRemaining=FormatTimeRemaining(reminder_at, now),
        NextReminderAt=NextReminderDate(repeat_type, reminder_at),
        LastTriggeredAt=EnsureUtc(record.LastTriggeredAt),
        CreatedAt=record.CreatedAt,
        UpdatedAt=record.UpdatedAt,
    )


def _BuildNoteDetailOut(note: Note, now: datetime) -> NoteDetailOut:
    tags = sorted(note.Tags, key=lambda tag: (tag.Name.lower(), tag.Id))
    images = sorted(note.Images, key=lambda image: image.Id)
    reminders = sorted(note.Reminders, key=lambda record: (EnsureUtc(record.ReminderAt), record.Id))
    return NoteDetailOut(
        **_BuildNoteOut(note).model_dump(),
        Tags=[_BuildTagOut(tag) for tag in tags],
        Images=[NoteImageOut.model_validate(image) for image in images],
        Reminders=[_BuildReminderOut(record, now) for record in reminders],
    )


def _read_upload(file: UploadFile) -> bytes:
    data = file.file.read()
    return data or b""
