from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.modules.auth.deps import NowUtc, UserContext
from app.modules.notes.models import Note, NoteTagLink, Tag
from app.modules.notes.services.common import (
    GetOwnedNote,
    GetOwnedTag,
    NormalizeName,
    NotesValidationError,
)

logger = logging.getLogger("app.notes.tags")


@dataclass
class TagWithCount:
    Tag: Tag
    NoteCount: int


def NormalizeTagKey(value: str) -> str:
    return " ".join(value.split()).lower()


def _SortTags(tags: Iterable[Tag]) -> list[Tag]:
    return sorted(tags, key=lambda tag: (tag.Name.lower(), tag.Id))


def _FindTag(db: Session, user: UserContext, name: str) -> Tag | None:
    return (
        db.query(Tag)
        .filter(Tag.OwnerUserId == user.Id, Tag.NormalizedName == NormalizeTagKey(name))
        .first()
    )


def _GetOrCreateTag(db: Session, user: UserContext, name: str) -> Tag:
    normalized = NormalizeName(name)
    if not normalized:
        raise NotesValidationError("Tag name is required")
    existing = _FindTag(db, user, normalized)
    if existing:
        return existing
    record = Tag(
        OwnerUserId=user.Id,
        Name=normalized,
        NormalizedName=NormalizeTagKey(normalized),
        CreatedAt=NowUtc(),
    )
    db.add(record)
    db.flush()
    return record


def CreateTag(db: Session, user: UserContext, name: str) -> Tag:
    record = _GetOrCreateTag(db, user, name)
    db.commit()
    db.refresh(record)
    return record


def ListTags(db: Session, user: UserContext) -> list[TagWithCount]:
    tags = db.query(Tag).filter(Tag.OwnerUserId == user.Id).all()
    counts = dict(
        db.query(NoteTagLink.TagId, func.count(NoteTagLink.NoteId))
        .join(Note, Note.Id == NoteTagLink.NoteId)
        .filter(
            Note.OwnerUserId == user.Id,
            Note.IsInTrash == False,  # noqa: E712
        )
        .group_by(NoteTagLink.TagId)
        .all()
    )
    return [TagWithCount(Tag=tag, NoteCount=int(counts.get(tag.Id, 0))) for tag in _SortTags(tags)]


def RenameTag(db: Session, user: UserContext, tag_id: int, name: str) -> Tag:
    tag = GetOwnedTag(db, user, tag_id)
    normalized = NormalizeName(name)
    if not normalized:
        raise NotesValidationError("Tag name is required")
    clash = _FindTag(db, user, normalized)
    if clash and clash.Id != tag.Id:
        raise NotesValidationError("A tag with this name already exists")
    tag.Name = normalized
    tag.NormalizedName = NormalizeTagKey(normalized)
    db.commit()
    db.refresh(tag)
    return tag


def DeleteTag(db: Session, user: UserContext, tag_id: int) -> None:
    tag = GetOwnedTag(db, user, tag_id)
    db.delete(tag)
    db.commit()
    logger.info("tag deleted tag_id=%s", tag_id)


def ListTagsForNote(db: Session, user: UserContext, note_id: int) -> list[Tag]:
    note = GetOwnedNote(db, user, note_id)
    return _SortTags(note.Tags)


def SetNoteTags(db: Session, user: UserContext, note_id: int, names: Iterable[str]) -> list[Tag]:
    note = GetOwnedNote(db, user, note_id)
    tags: dict[str, Tag] = {}
    for name in names:
        if not name or not str(name).strip():
            continue
        tag = _GetOrCreateTag(db, user, str(name))
        tags.setdefault(tag.NormalizedName, tag)
    note.Tags = list(tags.values())
    db.commit()
    return _SortTags(note.Tags)


def AddTagToNote(db: Session, user: UserContext, note_id: int, tag_id: int) -> list[Tag]:
    note = GetOwnedNote(db, user, note_id)
    tag = GetOwnedTag(db, user, tag_id)
    if tag not in note.Tags:
        note.Tags.append(tag)
        db.commit()
    return _SortTags(note.Tags)


def RemoveTagFromNote(db: Session, user: UserContext, note_id: int, tag_id: int) -> list[Tag]:
    note = GetOwnedNote(db, user, note_id)
    tag = GetOwnedTag(db, user, tag_id)
    if tag in note.Tags:
        note.Tags.remove(tag)
        db.commit()
    return _SortTags(note.Tags)


def ListNotesForTag(db: Session, user: UserContext, tag_id: int) -> list[Note]:
    tag = GetOwnedTag(db, user, tag_id)
    return (
        db.query(Note)
        .join(NoteTagLink, NoteTagLink.NoteId == Note.Id)
        .filter(
            NoteTagLink.TagId == tag.Id,
            Note.IsInTrash == False,  # noqa: E712
        )
        .order_by(Note.UpdatedAt.desc(), Note.Id.desc())
        .all()
    )
