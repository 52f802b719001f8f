from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated, UserContext
from app.modules.notes.routes.common import _BuildNoteOut, _BuildTagOut, _handle_db_error, _handle_notes_error
from app.modules.notes.schemas import NoteOut, NoteTagsUpdate, TagCreate, TagOut, TagRename
from app.modules.notes.services.tags_service import (
    AddTagToNote,
    CreateTag,
    DeleteTag,
    ListNotesForTag,
    ListTags,
    ListTagsForNote,
    RemoveTagFromNote,
    RenameTag,
    SetNoteTags,
)

router = APIRouter()


@router.get("/tags", response_model=list[TagOut])
def ListTagsRoute(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[TagOut]:
    try:
        return [_BuildTagOut(entry.Tag, entry.NoteCount) for entry in ListTags(db, user)]
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.post("/tags", response_model=TagOut, status_code=status.HTTP_201_CREATED)
def CreateTagRoute(
    payload: TagCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> TagOut:
    try:
        return _BuildTagOut(CreateTag(db, user, payload.Name))
    except ValueError as exc:
        _handle_notes_error(exc)


@router.patch("/tags/{tag_id}", response_model=TagOut)
def RenameTagRoute(
    tag_id: int,
    payload: TagRename,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> TagOut:
    try:
        return _BuildTagOut(RenameTag(db, user, tag_id, payload.Name))
    except ValueError as exc:
        _handle_notes_error(exc)


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def DeleteTagRoute(
    tag_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> None:
    try:
        DeleteTag(db, user, tag_id)
    except ValueError as exc:
        _handle_notes_error(exc)
    return None


@router.get("/tags/{tag_id}/notes", response_model=list[NoteOut])
def ListTagNotes(
    tag_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[NoteOut]:
    try:
        return [_BuildNoteOut(note) for note in ListNotesForTag(db, user, tag_id)]
    except ValueError as exc:
        _handle_notes_error(exc)


@router.get("/notes/{note_id}/tags", response_model=list[TagOut])
def ListNoteTags(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[TagOut]:
    try:
        return [_BuildTagOut(tag) for tag in ListTagsForNote(db, user, note_id)]
    except ValueError as exc:
        _handle_notes_error(exc)


@router.put("/notes/{note_id}/tags", response_model=list[TagOut])
def SetNoteTagsRoute(
    note_id: int,
    payload: NoteTagsUpdate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[TagOut]:
    try:
        return [_BuildTagOut(tag) for tag in SetNoteTags(db, user, note_id, payload.Names)]
    except ValueError as exc:
        _handle_notes_error(exc)


@router.post("/notes/{note_id}/tags/{tag_id}", response_model=list[TagOut])
def AddNoteTag(
    note_id: int,
    tag_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[TagOut]:
    try:
        return [_BuildTagOut(tag) for tag in AddTagToNote(db, user, note_id, tag_id)]
    except ValueError as exc:
        _handle_notes_error(exc)


@router.delete("/notes/{note_id}/tags/{tag_id}", response_model=list[TagOut])
def RemoveNoteTag(
    note_id: int,
    tag_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[TagOut]:
    try:
        return [_BuildTagOut(tag) for tag in RemoveTagFromNote(db, user, note_id, tag_id)]
    except ValueError as exc:
        _handle_notes_error(exc)
