from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.auth.deps import NowUtc, UserContext
from app.modules.notes.image_storage import DeleteStoredImages
from app.modules.notes.models import Folder, Note, NoteImage
from app.modules.notes.services.common import (
    GetOwnedFolder,
    GetWritableFolder,
    NormalizeName,
    NotesValidationError,
)

logger = logging.getLogger("app.notes.folders")

DEFAULT_FOLDER_NAME = "New Folder"
PATH_SEPARATOR = "/"


@dataclass
class FolderSummary:
    Folder: Folder
    FullPath: str
    ChildCount: int
    NoteCount: int


def _OwnerFolders(db: Session, user: UserContext) -> list[Folder]:
    return db.query(Folder).filter(Folder.OwnerUserId == user.Id).all()


def BuildFolderPath(folder: Folder, folders_by_id: dict[int, Folder] | None = None) -> str:
    parts: list[str] = []
    seen: set[int] = set()
    current: Folder | None = folder
    while current is not None and current.Id not in seen:
        seen.add(current.Id)
        parts.append(current.Name)
        if current.ParentFolderId is None:
            break
        if folders_by_id is not None:
            current = folders_by_id.get(current.ParentFolderId)
        else:
            current = current.Parent
    return PATH_SEPARATOR.join(reversed(parts))


def CollectDescendantIds(folder_id: int, folders: list[Folder]) -> set[int]:
    children_by_parent: dict[int, list[int]] = {}
    for record in folders:
        if record.ParentFolderId is not None:
            children_by_parent.setdefault(record.ParentFolderId, []).append(record.Id)
    found: set[int] = set()
    pending = list(children_by_parent.get(folder_id, []))
    while pending:
        current = pending.pop()
        if current in found:
            continue
        found.add(current)
        pending.extend(children_by_parent.get(current, []))
    return found


def _CollectAncestors(folder: Folder) -> list[Folder]:
    ancestors: list[Folder] = []
    seen = {folder.Id}
    current = folder.Parent
    while current is not None and current.Id not in seen:
        seen.add(current.Id)
        ancestors.append(current)
        current = current.Parent
    return ancestors


def _SortByName(folders: list[Folder]) -> list[Folder]:
    return sorted(folders, key=lambda record: (record.Name.lower(), record.Id))


def CreateFolder(db: Session, user: UserContext, *, name: str | None, parent_id: int | None) -> Folder:
    parent = GetWritableFolder(db, user, parent_id) if parent_id is not None else None
    now = NowUtc()
    record = Folder(
        OwnerUserId=user.Id,
        ParentFolderId=parent.Id if parent else None,
        Name=NormalizeName(name) or DEFAULT_FOLDER_NAME,
        IsInTrash=False,
        CreatedAt=now,
        UpdatedAt=now,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("folder created folder_id=%s parent_id=%s", record.Id, record.ParentFolderId)
    return record


def ListRootFolders(db: Session, user: UserContext) -> list[Folder]:
    records = (
        db.query(Folder)
        .filter(
            Folder.OwnerUserId == user.Id,
            Folder.ParentFolderId.is_(None),
            Folder.IsInTrash == False,  # noqa: E712
        )
        .all()
    )
    return _SortByName(records)


def ListChildFolders(db: Session, user: UserContext, folder_id: int) -> list[Folder]:
    folder = GetOwnedFolder(db, user, folder_id)
    return _SortByName([child for child in folder.Children if not child.IsInTrash])


def SummarizeFolders(db: Session, user: UserContext, folders: list[Folder]) -> list[FolderSummary]:
    if not folders:
        return []
    folders_by_id = {record.Id: record for record in _OwnerFolders(db, user)}
    folder_ids = [record.Id for record in folders]
    child_counts = dict(
        db.query(Folder.ParentFolderId, func.count(Folder.Id))
        .filter(
            Folder.ParentFolderId.in_(folder_ids),
            Folder.IsInTrash == False,  # noqa: E712
        )
        .group_by(Folder.ParentFolderId)
        .all()
    )
    note_counts = dict(
        db.query(Note.FolderId, func.count(Note.Id))
        .filter(
            Note.FolderId.in_(folder_ids),
            Note.IsInTrash == False,  # noqa: E712
        )
        .group_by(Note.FolderId)
        .all()
    )
    return [
        FolderSummary(
            Folder=record,
            FullPath=BuildFolderPath(record, folders_by_id),
            ChildCount=int(child_counts.get(record.Id, 0)),
            NoteCount=int(note_counts.get(record.Id, 0)),
        )
        for record in folders
    ]


def GetFolderSummary(db: Session, user: UserContext, folder_id: int) -> FolderSummary:
    folder = GetOwnedFolder(db, user, folder_id)
    return SummarizeFolders(db, user, [folder])[0]


def RenameFolder(db: Session, user: UserContext, folder_id: int, name: str | None) -> Folder:
    folder = GetOwnedFolder(db, user, folder_id)
    normalized = NormalizeName(name)
    if not normalized:
        raise NotesValidationError("Folder name is required")
    if normalized == folder.Name:
        return folder
    folder.Name = normalized
    folder.UpdatedAt = NowUtc()
    db.commit()
    db.refresh(folder)
    return folder


def MoveFolder(db: Session, user: UserContext, folder_id: int, parent_id: int | None) -> Folder:
    folder = GetOwnedFolder(db, user, folder_id)
    if parent_id is None:
        target = None
    else:
        if parent_id == folder.Id:
            raise NotesValidationError("A folder cannot be moved into itself")
        target = GetWritableFolder(db, user, parent_id)
        if target.Id in CollectDescendantIds(folder.Id, _OwnerFolders(db, user)):
            raise NotesValidationError("A folder cannot be moved into one of its subfolders")

    new_parent_id = target.Id if target else None
    if folder.ParentFolderId == new_parent_id:
        return folder
    folder.Parent = target
    folder.UpdatedAt = NowUtc()
    db.commit()
    db.refresh(folder)
    logger.info("folder moved folder_id=%s parent_id=%s", folder.Id, new_parent_id)
    return folder


def ListMoveTargets(db: Session, user: UserContext, folder_id: int) -> list[FolderSummary]:
    folder = GetOwnedFolder(db, user, folder_id)
    folders = _OwnerFolders(db, user)
    excluded = CollectDescendantIds(folder.Id, folders) | {folder.Id}
    candidates = [record for record in folders if record.Id not in excluded and not record.IsInTrash]
    summaries = SummarizeFolders(db, user, candidates)
    return sorted(summaries, key=lambda entry: (entry.Folder.Name.lower(), entry.Folder.Id))


def TrashFolder(db: Session, user: UserContext, folder_id: int) -> Folder:
    folder = GetOwnedFolder(db, user, folder_id)
    now = NowUtc()
    subtree_ids = CollectDescendantIds(folder.Id, _OwnerFolders(db, user)) | {folder.Id}
    folders = db.query(Folder).filter(Folder.Id.in_(subtree_ids)).all()
    for record in folders:
        if record.IsInTrash:
            continue
        record.IsInTrash = True
        record.TrashedAt = now
        record.UpdatedAt = now
    notes = (
        db.query(Note)
        .filter(
            Note.FolderId.in_(subtree_ids),
            Note.IsInTrash == False,  # noqa: E712
        )
        .all()
    )
    for note in notes:
        note.IsInTrash = True
        note.TrashedAt = now
        note.UpdatedAt = now
    db.commit()
    db.refresh(folder)
    logger.info("folder trashed folder_id=%s folders=%s notes=%s", folder.Id, len(subtree_ids), len(notes))
    return folder


def RestoreFolderAncestors(folder: Folder, now) -> int:
    restored = 0
    for ancestor in _CollectAncestors(folder):
        if ancestor.IsInTrash:
            ancestor.IsInTrash = False
            ancestor.TrashedAt = None
            ancestor.UpdatedAt = now
            restored += 1
    return restored


def RestoreFolder(db: Session, user: UserContext, folder_id: int) -> Folder:
    folder = GetOwnedFolder(db, user, folder_id)
    if not folder.IsInTrash:
        return folder
    now = NowUtc()
    trashed_at = folder.TrashedAt
    subtree_ids = CollectDescendantIds(folder.Id, _OwnerFolders(db, user))

    # Only items trashed together with this folder come back with it.
    if trashed_at is not None and subtree_ids:
        descendants = (
            db.query(Folder)
            .filter(
                Folder.Id.in_(subtree_ids),
                Folder.IsInTrash == True,  # noqa: E712
                Folder.TrashedAt == trashed_at,
            )
            .all()
        )
        for record in descendants:
            record.IsInTrash = False
            record.TrashedAt = None
            record.UpdatedAt = now
    if trashed_at is not None:
        notes = (
            db.query(Note)
            .filter(
                Note.FolderId.in_(subtree_ids | {folder.Id}),
                Note.IsInTrash == True,  # noqa: E712
                Note.TrashedAt == trashed_at,
            )
            .all()
        )
        for note in notes:
            note.IsInTrash = False
            note.TrashedAt = None
            note.UpdatedAt = now

    folder.IsInTrash = False
    folder.TrashedAt = None
    folder.UpdatedAt = now
    RestoreFolderAncestors(folder, now)
    db.commit()
    db.refresh(folder)
    logger.info("folder restored folder_id=%s", folder.Id)
    return folder


def CollectImagePathsForFolders(db: Session, folder_ids: set[int]) -> list[str]:
    if not folder_ids:
        return []
    rows = (
        db.query(NoteImage.StoragePath)
        .join(Note, Note.Id == NoteImage.NoteId)
        .filter(Note.FolderId.in_(folder_ids))
        .all()
    )
    return [row.StoragePath for row in rows]


def DeleteFolderTree(db: Session, user: UserContext, folder: Folder) -> list[str]:
    """Delete a folder with its subfolders, notes, images and reminders.

    Returns the storage paths of removed images; the caller unlinks them after commit.
    """
    subtree_ids = CollectDescendantIds(folder.Id, _OwnerFolders(db, user)) | {folder.Id}
    image_paths = CollectImagePathsForFolders(db, subtree_ids)
    db.delete(folder)
    return image_paths


def PermanentlyDeleteFolder(db: Session, user: UserContext, folder_id: int) -> None:
    folder = GetOwnedFolder(db, user, folder_id)
    image_paths = DeleteFolderTree(db, user, folder)
    db.commit()
    DeleteStoredImages(image_paths)
    logger.info("folder deleted folder_id=%s images=%s", folder_id, len(image_paths))
