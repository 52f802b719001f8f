from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import NowUtc, RequireAuthenticated, UserContext
from app.modules.notes.image_storage import DetectImageType
from app.modules.notes.routes.common import _BuildNoteDetailOut, _handle_db_error, _handle_notes_error, _read_upload
from app.modules.notes.schemas import NoteDetailOut, OcrTextResponse
from app.modules.notes.services.images_service import CreateNoteFromOcr
from app.modules.notes.services.ocr_service import RecognizeRequiredText

router = APIRouter()


@router.post("/notes/ocr", response_model=OcrTextResponse)
def ExtractTextFromUpload(
    file: UploadFile = File(...),
    user: UserContext = Depends(RequireAuthenticated),
) -> OcrTextResponse:
    data = _read_upload(file)
    try:
        DetectImageType(file.content_type, file.filename, data)
        result = RecognizeRequiredText(data)
    except ValueError as exc:
        _handle_notes_error(exc)
    return OcrTextResponse(Text=result.Text, LineCount=result.LineCount)


@router.post("/notes/ocr/note", response_model=NoteDetailOut, status_code=status.HTTP_201_CREATED)
def CreateNoteFromImage(
    file: UploadFile = File(...),
    folder_id: int = Form(...),
    title: str | None = Form(None),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> NoteDetailOut:
    try:
        note = CreateNoteFromOcr(
            db,
            user,
            folder_id=folder_id,
            data=_read_upload(file),
            filename=file.filename,
            content_type=file.content_type,
            title=title,
        )
        return _BuildNoteDetailOut(note, NowUtc())
    except ValueError as exc:
        _handle_notes_error(exc)
    except ProgrammingError as exc:
        _handle_db_error(exc)
