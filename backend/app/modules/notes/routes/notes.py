from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import NowUtc, RequireAuthenticated, UserContext
from app.modules.notes.routes.common import (
    _BuildNoteDetailOut,
    _BuildNoteOut,
    _handle_db_error,
    _handle_notes_error,
    _read_upload,
)
from app.modules.notes.schemas import NoteCreate, NoteDetailOut, NoteMove, NoteOut, NoteUpdate
from app.modules.notes.services.notes_service import (
    CreateNote,
    GetNote,
    GetRichContent,
    ListAllNotes,
    ListNotesInFolder,
    MoveNote,
    PermanentlyDeleteNote,
    ReplaceRichContent,
    RestoreNote,
    TrashNote,
    UpdateNote,
)

router = APIRouter()

RICH_CONTENT_MEDIA_TYPE = "application/octet-stream"


@router.get("", response_model=list[NoteOut])
def ListNotes(
    folder_id: int | None = Query(default=None),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[NoteOut]:
    try:
        if folder_id is not None:
            notes = ListNotesInFolder(db, user, folder_id)
        else:
            notes = ListAllNotes(db, user)
        return [_BuildNoteOut(note) for note in notes]
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.post("", response_model=NoteOut, status_code=status.HTTP_201_CREATED)
def CreateNoteRoute(
    payload: NoteCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteOut:
    try:
        note = CreateNote(
            db,
            user,
            folder_id=payload.FolderId,
            title=payload.Title,
            content=payload.Content,
        )
        return _BuildNoteOut(note)
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.get("/{note_id}", response_model=NoteDetailOut)
def GetNoteRoute(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteDetailOut:
    try:
        return _BuildNoteDetailOut(GetNote(db, user, note_id), NowUtc())
    except ValueError as exc:
        _handle_notes_error(exc)


@router.patch("/{note_id}", response_model=NoteOut)
def UpdateNoteRoute(
    note_id: int,
    payload: NoteUpdate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteOut:
    fields = payload.model_dump(exclude_unset=True)
    changes = {}
    if "Title" in fields:
        changes["title"] = fields["Title"]
    if "Content" in fields:
        changes["content"] = fields["Content"]
    try:
        return _BuildNoteOut(UpdateNote(db, user, note_id, **changes))
    except ValueError as exc:
        _handle_notes_error(exc)


@router.post("/{note_id}/move", response_model=NoteOut)
def MoveNoteRoute(
    note_id: int,
    payload: NoteMove,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteOut:
    try:
        return _BuildNoteOut(MoveNote(db, user, note_id, payload.FolderId))
    except ValueError as exc:
        _handle_notes_error(exc)


@router.post("/{note_id}/trash", response_model=NoteOut)
def TrashNoteRoute(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteOut:
    try:
        return _BuildNoteOut(TrashNote(db, user, note_id))
    except ValueError as exc:
        _handle_notes_error(exc)


@router.post("/{note_id}/restore", response_model=NoteOut)
def RestoreNoteRoute(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteOut:
    try:
        return _BuildNoteOut(RestoreNote(db, user, note_id))
    except ValueError as exc:
        _handle_notes_error(exc)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def DeleteNoteRoute(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> None:
    try:
        PermanentlyDeleteNote(db, user, note_id)
    except ValueError as exc:
        _handle_notes_error(exc)
    return None


@router.get("/{note_id}/rich-content")
def GetRichContentRoute(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> Response:
    try:
        data = GetRichContent(db, user, note_id)
    except ValueError as exc:
        _handle_notes_error(exc)
    return Response(content=data, media_type=RICH_CONTENT_MEDIA_TYPE)


@router.put("/{note_id}/rich-content", response_model=NoteOut)
def ReplaceRichContentRoute(
    note_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteOut:
    try:
        return _BuildNoteOut(ReplaceRichContent(db, user, note_id, _read_upload(file)))
    except ValueError as exc:
        _handle_notes_error(exc)


@router.delete("/{note_id}/rich-content", response_model=NoteOut)
def ClearRichContentRoute(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteOut:
    try:
        return _BuildNoteOut(ReplaceRichContent(db, user, note_id, None))
    except ValueError as exc:
        _handle_notes_error(exc)
