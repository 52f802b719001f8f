from fastapi import APIRouter, Depends
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated, UserContext
from app.modules.notes.routes.common import _BuildFolderOut, _BuildNoteOut, _handle_db_error
from app.modules.notes.schemas import TrashCountResponse, TrashOut, TrashPurgeResponse
from app.modules.notes.services.folders_service import SummarizeFolders
from app.modules.notes.services.trash_service import EmptyTrash, ListTrash, TrashCount

router = APIRouter()


@router.get("", response_model=TrashOut)
def ListTrashRoute(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> TrashOut:
    try:
        listing = ListTrash(db, user)
        folders = SummarizeFolders(db, user, listing.Folders)
    except ProgrammingError as exc:
        _handle_db_error(exc)
    return TrashOut(
        Notes=[_BuildNoteOut(note) for note in listing.Notes],
        Folders=[_BuildFolderOut(summary) for summary in folders],
        Count=len(listing.Notes) + len(listing.Folders),
    )


@router.get("/count", response_model=TrashCountResponse)
def TrashCountRoute(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> TrashCountResponse:
    try:
        return TrashCountResponse(Count=TrashCount(db, user))
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.delete("", response_model=TrashPurgeResponse)
def EmptyTrashRoute(
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> TrashPurgeResponse:
    try:
        result = EmptyTrash(db, user)
    except ProgrammingError as exc:
        _handle_db_error(exc)
    return TrashPurgeResponse(
        NotesDeleted=result.NotesDeleted,
        FoldersDeleted=result.FoldersDeleted,
        ImagesDeleted=result.ImagesDeleted,
    )
