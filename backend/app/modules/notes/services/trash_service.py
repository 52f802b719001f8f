from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.auth.deps import NowUtc, UserContext
from app.modules.notes.image_storage import DeleteStoredImages
from app.modules.notes.models import Folder, Note
from app.modules.notes.services.folders_service import DeleteFolderTree
from app.modules.notes.services.notes_service import DeleteNoteRecord

logger = logging.getLogger("app.notes.trash")


@dataclass
class TrashListing:
    Notes: list[Note] = field(default_factory=list)
    Folders: list[Folder] = field(default_factory=list)


@dataclass
class TrashPurgeResult:
    NotesDeleted: int = 0
    FoldersDeleted: int = 0
    ImagesDeleted: int = 0


def _TrashedNotesQuery(db: Session, owner_user_id: int):
    return db.query(Note).filter(
        Note.OwnerUserId == owner_user_id,
        Note.IsInTrash == True,  # noqa: E712
    )


def _TrashedFoldersQuery(db: Session, owner_user_id: int):
    return db.query(Folder).filter(
        Folder.OwnerUserId == owner_user_id,
        Folder.IsInTrash == True,  # noqa: E712
    )


def ListTrash(db: Session, user: UserContext) -> TrashListing:
    notes = _TrashedNotesQuery(db, user.Id).order_by(Note.UpdatedAt.desc(), Note.Id.desc()).all()
    folders = _TrashedFoldersQuery(db, user.Id).all()
    folders.sort(key=lambda record: (record.Name.lower(), record.Id))
    return TrashListing(Notes=notes, Folders=folders)


def TrashCount(db: Session, user: UserContext) -> int:
    note_count = _TrashedNotesQuery(db, user.Id).with_entities(func.count(Note.Id)).scalar() or 0
    folder_count = _TrashedFoldersQuery(db, user.Id).with_entities(func.count(Folder.Id)).scalar() or 0
    return int(note_count) + int(folder_count)


def _Purge(db: Session, user: UserContext, *, cutoff: datetime | None) -> TrashPurgeResult:
    result = TrashPurgeResult()
    image_paths: list[str] = []

    notes_query = _TrashedNotesQuery(db, user.Id)
    if cutoff is not None:
        notes_query = notes_query.filter(Note.TrashedAt <= cutoff)
    for note in notes_query.all():
        image_paths.extend(DeleteNoteRecord(db, note))
        result.NotesDeleted += 1
    db.flush()

    folders_query = _TrashedFoldersQuery(db, user.Id)
    if cutoff is not None:
        folders_query = folders_query.filter(Folder.TrashedAt <= cutoff)
    folders = folders_query.all()
    folder_ids = {record.Id for record in folders}
    # A trashed subfolder of a folder being purged goes with its parent.
    for folder in folders:
        result.FoldersDeleted += 1
        if folder.ParentFolderId in folder_ids:
            continue
        image_paths.extend(DeleteFolderTree(db, user, folder))

    db.commit()
    result.ImagesDeleted = DeleteStoredImages(image_paths)
    return result


def EmptyTrash(db: Session, user: UserContext) -> TrashPurgeResult:
    result = _Purge(db, user, cutoff=None)
    logger.info(
        "trash emptied user_id=%s notes=%s folders=%s images=%s",
        user.Id,
        result.NotesDeleted,
        result.FoldersDeleted,
        result.ImagesDeleted,
    )
    return result


def PurgeTrash(db: Session, user: UserContext, *, older_than_days: int, now: datetime | None = None) -> TrashPurgeResult:
    cutoff = (now or NowUtc()) - timedelta(days=max(0, older_than_days))
    result = _Purge(db, user, cutoff=cutoff)
    logger.info(
        "trash purged user_id=%s older_than_days=%s notes=%s folders=%s",
        user.Id,
        older_than_days,
        result.NotesDeleted,
        result.FoldersDeleted,
    )
    return result
