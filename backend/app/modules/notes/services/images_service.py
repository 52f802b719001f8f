from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.modules.auth.deps import NowUtc, UserContext
from app.modules.notes.image_storage import DeleteStoredImages, SaveImageBytes, StoredImage
from app.modules.notes.models import Note, NoteImage
from app.modules.notes.services.common import GetOwnedImage, GetOwnedNote, GetWritableFolder, NormalizeName
from app.modules.notes.services.notes_service import CreateNote
from app.modules.notes.services.ocr_service import OcrStatus, RecognizeRequiredText

logger = logging.getLogger("app.notes.images")

DEFAULT_OCR_NOTE_TITLE = "OCR Scan Result"


def _AttachStoredImage(
    db: Session,
    user: UserContext,
    note: Note,
    stored: StoredImage,
    *,
    ocr_status: str,
    ocr_text: str | None = None,
) -> NoteImage:
    now = NowUtc()
    record = NoteImage(
        OwnerUserId=user.Id,
        NoteId=note.Id,
        StoragePath=stored.StoragePath,
        ContentType=stored.ContentType,
        OriginalFileName=stored.OriginalFileName,
        FileSizeBytes=stored.FileSizeBytes,
        Hash=stored.Hash,
        OcrText=ocr_text,
        OcrStatus=ocr_status,
        OcrUpdatedAt=now if ocr_status == OcrStatus.Complete else None,
        CreatedAt=now,
    )
    db.add(record)
    return record


def AddImage(
    db: Session,
    user: UserContext,
    note_id: int,
    *,
    data: bytes,
    filename: str | None,
    content_type: str | None,
    run_ocr: bool = False,
) -> NoteImage:
    note = GetOwnedNote(db, user, note_id)
    stored = SaveImageBytes(data=data, owner_user_id=user.Id, filename=filename, content_type=content_type)
    try:
        record = _AttachStoredImage(
            db,
            user,
            note,
            stored,
            ocr_status=OcrStatus.Pending if run_ocr else OcrStatus.Skipped,
        )
        note.UpdatedAt = NowUtc()
        db.commit()
    except Exception:
        db.rollback()
        DeleteStoredImages([stored.StoragePath])
        raise
    db.refresh(record)
    logger.info("image attached image_id=%s note_id=%s bytes=%s", record.Id, note.Id, record.FileSizeBytes)
    return record


def ListImages(db: Session, user: UserContext, note_id: int) -> list[NoteImage]:
    note = GetOwnedNote(db, user, note_id)
    return (
        db.query(NoteImage)
        .filter(NoteImage.NoteId == note.Id)
        .order_by(NoteImage.CreatedAt.asc(), NoteImage.Id.asc())
        .all()
    )


def GetImage(db: Session, user: UserContext, image_id: int) -> NoteImage:
    return GetOwnedImage(db, user, image_id)


def DeleteImage(db: Session, user: UserContext, image_id: int) -> None:
    record = GetOwnedImage(db, user, image_id)
    storage_path = record.StoragePath
    db.delete(record)
    db.commit()
    DeleteStoredImages([storage_path])


def CreateNoteFromOcr(
    db: Session,
    user: UserContext,
    *,
    folder_id: int,
    data: bytes,
    filename: str | None,
    content_type: str | None,
    title: str | None = None,
) -> Note:
    """Recognize text in an image and file it as a new note with the image attached."""
    GetWritableFolder(db, user, folder_id)
    result = RecognizeRequiredText(data)
    stored = SaveImageBytes(data=data, owner_user_id=user.Id, filename=filename, content_type=content_type)
    try:
        note = CreateNote(
            db,
            user,
            folder_id=folder_id,
            title=NormalizeName(title) or DEFAULT_OCR_NOTE_TITLE,
            content=result.Text,
        )
        _AttachStoredImage(db, user, note, stored, ocr_status=OcrStatus.Complete, ocr_text=result.Text)
        db.commit()
    except Exception:
        db.rollback()
        DeleteStoredImages([stored.StoragePath])
        raise
    db.refresh(note)
    logger.info("ocr note created note_id=%s lines=%s", note.Id, result.LineCount)
    return note
