import io
import logging
import os
from dataclasses import dataclass

import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError
from sqlalchemy.orm import Session

from app.modules.auth.deps import NowUtc
from app.modules.notes.image_storage import ReadImageBytes
from app.modules.notes.models import NoteImage

logger = logging.getLogger("app.ocr")

# Simplified Chinese, Traditional Chinese, English.
DEFAULT_OCR_LANGUAGES = "chi_sim+chi_tra+eng"


class OcrStatus:
    Pending = "Pending"
    Complete = "Complete"
    Failed = "Failed"
    Skipped = "Skipped"


class OcrError(ValueError):
    pass


class OcrNoTextError(OcrError):
    pass


@dataclass
class OcrResult:
    Text: str
    LineCount: int


def ResolveOcrLanguages() -> str:
    return os.getenv("OCR_LANGUAGES", "").strip() or DEFAULT_OCR_LANGUAGES


def JoinRecognizedLines(raw_text: str) -> OcrResult:
    lines = [line.strip() for line in (raw_text or "").splitlines()]
    kept = [line for line in lines if line]
    return OcrResult(Text="\n".join(kept), LineCount=len(kept))


def _LoadImage(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise OcrError("Unable to read image") from exc
    image = ImageOps.exif_transpose(image)
    if image.mode not in {"RGB", "L"}:
        image = image.convert("RGB")
    return image


def RecognizeText(data: bytes, *, languages: str | None = None) -> OcrResult:
    if not data:
        raise OcrError("Unable to read image")
    image = _LoadImage(data)
    lang = languages or ResolveOcrLanguages()
    try:
        raw_text = pytesseract.image_to_string(image, lang=lang)
    except pytesseract.TesseractNotFoundError as exc:
        logger.error("tesseract binary not found")
        raise OcrError("OCR engine unavailable") from exc
    except pytesseract.TesseractError as exc:
        logger.exception("tesseract failed lang=%s", lang)
        raise OcrError("Text recognition failed") from exc
    result = JoinRecognizedLines(raw_text)
    logger.debug("ocr recognized lines=%s lang=%s", result.LineCount, lang)
    return result


def RecognizeRequiredText(data: bytes) -> OcrResult:
    result = RecognizeText(data)
    if not result.Text:
        raise OcrNoTextError("No text recognized")
    return result


def UpdateOcrResults(db: Session, *, image_id: int, ocr_text: str | None, status: str) -> None:
    record = db.query(NoteImage).filter(NoteImage.Id == image_id).first()
    if not record:
        return
    record.OcrText = ocr_text
    record.OcrStatus = status
    record.OcrUpdatedAt = NowUtc()
    db.add(record)
    db.commit()


def RunImageOcr(db: Session, *, image_id: int) -> str:
    record = db.query(NoteImage).filter(NoteImage.Id == image_id).first()
    if not record:
        return OcrStatus.Skipped
    try:
        data = ReadImageBytes(record.StoragePath)
        result = RecognizeText(data)
    except (OcrError, OSError, ValueError):
        logger.exception("image ocr failed image_id=%s", image_id)
        UpdateOcrResults(db, image_id=image_id, ocr_text=None, status=OcrStatus.Failed)
        return OcrStatus.Failed
    UpdateOcrResults(db, image_id=image_id, ocr_text=result.Text or None, status=OcrStatus.Complete)
    logger.info("image ocr complete image_id=%s lines=%s", image_id, result.LineCount)
    return OcrStatus.Complete
