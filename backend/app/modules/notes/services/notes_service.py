from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.modules.auth.deps import NowUtc, UserContext
from app.modules.notes.image_storage import DeleteStoredImages
from app.modules.notes.models import Note
from app.modules.notes.services.common import (
    GetOwnedFolder,
    GetOwnedNote,
    GetWritableFolder,
    NormalizeName,
    NotesNotFoundError,
)
from app.modules.notes.services.folders_service import RestoreFolderAncestors

logger = logging.getLogger("app.notes")

DEFAULT_NOTE_TITLE = "New Note"
_UNSET = object()


def _ActiveNotesQuery(db: Session, user: UserContext):
    return db.query(Note).filter(
        Note.OwnerUserId == user.Id,
        Note.IsInTrash == False,  # noqa: E712
    )


def CreateNote(
    db: Session,
    user: UserContext,
    *,
    folder_id: int,
    title: str | None,
    content: str | None,
    rich_content: bytes | None = None,
) -> Note:
    folder = GetWritableFolder(db, user, folder_id)
    now = NowUtc()
    record = Note(
        OwnerUserId=user.Id,
        FolderId=folder.Id,
        Title=NormalizeName(title) or DEFAULT_NOTE_TITLE,
        Content=content or "",
        RichContent=rich_content,
        IsInTrash=False,
        CreatedAt=now,
        UpdatedAt=now,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("note created note_id=%s folder_id=%s", record.Id, folder.Id)
    return record


def GetNote(db: Session, user: UserContext, note_id: int) -> Note:
    return GetOwnedNote(db, user, note_id)


def ListNotesInFolder(db: Session, user: UserContext, folder_id: int) -> list[Note]:
    folder = GetOwnedFolder(db, user, folder_id)
    return (
        _ActiveNotesQuery(db, user)
        .filter(Note.FolderId == folder.Id)
        .order_by(Note.UpdatedAt.desc(), Note.Id.desc())
        .all()
    )


def ListAllNotes(db: Session, user: UserContext) -> list[Note]:
    return _ActiveNotesQuery(db, user).order_by(Note.UpdatedAt.desc(), Note.Id.desc()).all()


def UpdateNote(
    db: Session,
    user: UserContext,
    note_id: int,
    *,
    title=_UNSET,
    content=_UNSET,
    rich_content=_UNSET,
) -> Note:
    """Write only the fields that differ; ``UpdatedAt`` moves only on a real change."""
    note = GetOwnedNote(db, user, note_id)
    changed = False
    if title is not _UNSET:
        normalized = NormalizeName(title) or DEFAULT_NOTE_TITLE
        if normalized != note.Title:
            note.Title = normalized
            changed = True
    if content is not _UNSET:
        value = content or ""
        if value != note.Content:
            note.Content = value
            changed = True
    if rich_content is not _UNSET and rich_content != note.RichContent:
        note.RichContent = rich_content
        changed = True
    if not changed:
        return note
    note.UpdatedAt = NowUtc()
    db.commit()
    db.refresh(note)
    return note


def MoveNote(db: Session, user: UserContext, note_id: int, folder_id: int) -> Note:
    note = GetOwnedNote(db, user, note_id)
    folder = GetWritableFolder(db, user, folder_id)
    note.Folder = folder
    note.UpdatedAt = NowUtc()
    db.commit()
    db.refresh(note)
    logger.info("note moved note_id=%s folder_id=%s", note.Id, folder.Id)
    return note


def TrashNote(db: Session, user: UserContext, note_id: int) -> Note:
    note = GetOwnedNote(db, user, note_id)
    if note.IsInTrash:
        return note
    now = NowUtc()
    note.IsInTrash = True
    note.TrashedAt = now
    note.UpdatedAt = now
    db.commit()
    db.refresh(note)
    return note


def RestoreNote(db: Session, user: UserContext, note_id: int) -> Note:
    note = GetOwnedNote(db, user, note_id)
    if not note.IsInTrash:
        return note
    now = NowUtc()
    note.IsInTrash = False
    note.TrashedAt = None
    note.UpdatedAt = now
    folder = note.Folder
    if folder is not None:
        if folder.IsInTrash:
            folder.IsInTrash = False
            folder.TrashedAt = None
            folder.UpdatedAt = now
        RestoreFolderAncestors(folder, now)
    db.commit()
    db.refresh(note)
    return note


def DeleteNoteRecord(db: Session, note: Note) -> list[str]:
    image_paths = [image.StoragePath for image in note.Images]
    db.delete(note)
    return image_paths


def PermanentlyDeleteNote(db: Session, user: UserContext, note_id: int) -> None:
    note = GetOwnedNote(db, user, note_id)
    image_paths = DeleteNoteRecord(db, note)
    db.commit()
    DeleteStoredImages(image_paths)
    logger.info("note deleted note_id=%s images=%s", note_id, len(image_paths))


def GetRichContent(db: Session, user: UserContext, note_id: int) -> bytes:
    note = GetOwnedNote(db, user, note_id)
    if note.RichContent is None:
        raise NotesNotFoundError("Rich content not found")
    return note.RichContent


def ReplaceRichContent(db: Session, user: UserContext, note_id: int, data: bytes | None) -> Note:
    return UpdateNote(db, user, note_id, rich_content=data or None)
