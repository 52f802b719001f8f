import logging
import time

import pytesseract
from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.logging import format_frontend_message
from app.db import GetEngine

router = APIRouter(prefix="/api", tags=["health"])
logger = logging.getLogger("app.health")
frontend_logger = logging.getLogger("frontend")

FRONTEND_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@router.get("/health")
async def api_health() -> dict:
    return {"status": "ok"}


@router.get("/health/db")
def api_health_db() -> dict:
    try:
        with GetEngine().connect() as connection:
            connection.execute(text("SELECT 1")).scalar()
    except (RuntimeError, SQLAlchemyError) as exc:
        logger.exception("database health check failed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable") from exc
    return {"status": "ok"}


@router.get("/health/ocr")
def api_health_ocr() -> dict:
    try:
        version = pytesseract.get_tesseract_version()
    except pytesseract.TesseractNotFoundError as exc:
        logger.error("tesseract binary not found")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="OCR engine unavailable") from exc
    return {"status": "ok", "engine": "tesseract", "version": str(version)}


class FrontendLogPayload(BaseModel):
    level: str = Field(default="info", max_length=16)
    message: str = Field(..., max_length=2000)
    context: dict | None = None


@router.post("/logs")
async def api_logs(payload: FrontendLogPayload, request: Request) -> dict:
    context = {
        "ip": request.client.host if request.client else "unknown",
        "ua": request.headers.get("user-agent", "unknown"),
        **(payload.context or {}),
    }
    level = FRONTEND_LEVELS.get(payload.level.lower(), logging.INFO)
    frontend_logger.log(level, format_frontend_message(payload.message, context))
    return {"status": "ok", "timestamp": time.time()}
