import logging

from fastapi import APIRouter

from app.modules.notes.routes.folders import router as folders_router
from app.modules.notes.routes.images import router as images_router
from app.modules.notes.routes.notes import router as notes_router
from app.modules.notes.routes.ocr import router as ocr_router
from app.modules.notes.routes.reminders import router as reminders_router
from app.modules.notes.routes.search import router as search_router
from app.modules.notes.routes.tags import router as tags_router
from app.modules.notes.routes.trash import router as trash_router

router = APIRouter(prefix="/api", tags=["notes"])
logger = logging.getLogger("app.notes")


@router.get("/notes-status")
async def notes_status() -> dict:
    logger.debug("notes status ok")
    return {"status": "ok", "module": "notes"}


# The OCR paths sit under /notes and must register before /notes/{note_id}.
router.include_router(ocr_router, tags=["notes-ocr"])
router.include_router(folders_router, prefix="/folders", tags=["notes-folders"])
router.include_router(notes_router, prefix="/notes", tags=["notes-notes"])
router.include_router(tags_router, tags=["notes-tags"])
router.include_router(images_router, tags=["notes-images"])
router.include_router(reminders_router, tags=["notes-reminders"])
router.include_router(search_router, prefix="/search", tags=["notes-search"])
router.include_router(trash_router, prefix="/trash", tags=["notes-trash"])
