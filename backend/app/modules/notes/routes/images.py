import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb, OpenSession
from app.modules.auth.deps import RequireAuthenticated, UserContext
from app.modules.notes.image_storage import ResolveImagePath
from app.modules.notes.routes.common import _handle_db_error, _handle_notes_error, _read_upload
from app.modules.notes.schemas import NoteImageOut
from app.modules.notes.services.images_service import AddImage, DeleteImage, GetImage, ListImages
from app.modules.notes.services.ocr_service import RunImageOcr

router = APIRouter()
logger = logging.getLogger("app.notes.images")


def _run_image_ocr(image_id: int) -> None:
    db = OpenSession()
    try:
        RunImageOcr(db, image_id=image_id)
    except Exception:  # noqa: BLE001
        logger.exception("background ocr failed image_id=%s", image_id)
    finally:
        db.close()


@router.get("/notes/{note_id}/images", response_model=list[NoteImageOut])
def ListNoteImages(
    note_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> list[NoteImageOut]:
    try:
        return [NoteImageOut.model_validate(record) for record in ListImages(db, user, note_id)]
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.post("/notes/{note_id}/images", response_model=NoteImageOut, status_code=status.HTTP_201_CREATED)
def UploadNoteImage(
    note_id: int,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    run_ocr: bool = Form(False),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteImageOut:
    try:
        record = AddImage(
            db,
            user,
            note_id,
            data=_read_upload(file),
            filename=file.filename,
            content_type=file.content_type,
            run_ocr=run_ocr,
        )
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)
    if run_ocr:
        background_tasks.add_task(_run_image_ocr, record.Id)
    return NoteImageOut.model_validate(record)


@router.get("/images/{image_id}", response_model=NoteImageOut)
def GetImageRoute(
    image_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteImageOut:
    try:
        return NoteImageOut.model_validate(GetImage(db, user, image_id))
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)


@router.get("/images/{image_id}/file")
def DownloadImage(
    image_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> FileResponse:
    try:
        record = GetImage(db, user, image_id)
        path = ResolveImagePath(record.StoragePath)
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)
    if not path.exists():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(path, media_type=record.ContentType or "application/octet-stream")


@router.post("/images/{image_id}/ocr", response_model=NoteImageOut)
def RerunImageOcr(
    image_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteImageOut:
    try:
        record = GetImage(db, user, image_id)
        RunImageOcr(db, image_id=record.Id)
        db.refresh(record)
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)
    return NoteImageOut.model_validate(record)


@router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
def DeleteImageRoute(
    image_id: int,
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> None:
    try:
        DeleteImage(db, user, image_id)
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)
    return None
