from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated, UserContext
from app.modules.notes.routes.common import _BuildFolderOut, _BuildNoteOut, _handle_db_error, _handle_notes_error
from app.modules.notes.schemas import FolderCreate, FolderMove, FolderOut, FolderRename, NoteOut
from app.modules.notes.services.folders_service import (
    CreateFolder,
    GetFolderSummary,
    ListChildFolders,
    ListMoveTargets,
    ListRootFolders,
    MoveFolder,
    PermanentlyDeleteFolder,
    RenameFolder,
    RestoreFolder,
    SummarizeFolders,
    TrashFolder,
)
from app.modules.notes.services.notes_service import ListNotesInFolder

router = APIRouter()


def _summary_out(db: Session, user: UserContext, folder_id: int) -> FolderOut:
    return _BuildFolderOut(GetFolderSummary(db, user, folder_id))


@router.get("", response_model=list[FolderOut])
def ListFolders(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[FolderOut]:
    try:
        folders = ListRootFolders(db, user)
        return [_BuildFolderOut(summary) for summary in SummarizeFolders(db, user, folders)]
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.post("", response_model=FolderOut, status_code=status.HTTP_201_CREATED)
def CreateFolderRoute(
    payload: FolderCreate,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> FolderOut:
    try:
        folder = CreateFolder(db, user, name=payload.Name, parent_id=payload.ParentFolderId)
        return _summary_out(db, user, folder.Id)
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.get("/{folder_id}", response_model=FolderOut)
def GetFolderRoute(
    folder_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> FolderOut:
    try:
        return _summary_out(db, user, folder_id)
    except ValueError as exc:
        _handle_notes_error(exc)


@router.get("/{folder_id}/children", response_model=list[FolderOut])
def ListFolderChildren(
    folder_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[FolderOut]:
    try:
        children = ListChildFolders(db, user, folder_id)
        return [_BuildFolderOut(summary) for summary in SummarizeFolders(db, user, children)]
    except ValueError as exc:
        _handle_notes_error(exc)


@router.get("/{folder_id}/notes", response_model=list[NoteOut])
def ListFolderNotes(
    folder_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[NoteOut]:
    try:
        return [_BuildNoteOut(note) for note in ListNotesInFolder(db, user, folder_id)]
    except ValueError as exc:
        _handle_notes_error(exc)


@router.patch("/{folder_id}", response_model=FolderOut)
def RenameFolderRoute(
    folder_id: int,
    payload: FolderRename,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> FolderOut:
    try:
        RenameFolder(db, user, folder_id, payload.Name)
        return _summary_out(db, user, folder_id)
    except ValueError as exc:
        _handle_notes_error(exc)


@router.post("/{folder_id}/move", response_model=FolderOut)
def MoveFolderRoute(
    folder_id: int,
    payload: FolderMove,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> FolderOut:
    try:
        MoveFolder(db, user, folder_id, payload.ParentFolderId)
        return _summary_out(db, user, folder_id)
    except ValueError as exc:
        _handle_notes_error(exc)


@router.get("/{folder_id}/move-targets", response_model=list[FolderOut])
def ListFolderMoveTargets(
    folder_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[FolderOut]:
    try:
        return [_BuildFolderOut(summary) for summary in ListMoveTargets(db, user, folder_id)]
    except ValueError as exc:
        _handle_notes_error(exc)


@router.post("/{folder_id}/trash", response_model=FolderOut)
def TrashFolderRoute(
    folder_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> FolderOut:
    try:
        TrashFolder(db, user, folder_id)
        return _summary_out(db, user, folder_id)
    except ValueError as exc:
        _handle_notes_error(exc)


@router.post("/{folder_id}/restore", response_model=FolderOut)
def RestoreFolderRoute(
    folder_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> FolderOut:
    try:
        RestoreFolder(db, user, folder_id)
        return _summary_out(db, user, folder_id)
    except ValueError as exc:
        _handle_notes_error(exc)


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
def DeleteFolderRoute(
    folder_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> None:
    try:
        PermanentlyDeleteFolder(db, user, folder_id)
    except ValueError as exc:
        _handle_notes_error(exc)
    return None
