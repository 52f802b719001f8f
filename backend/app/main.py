import logging
import os
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.logging import setup_logging
from app.core.migrations import RunMigrations, ShouldRunMigrationsOnStartup
from app.modules.auth.router import router as auth_router
from app.modules.core.router import router as core_router
from app.modules.notes.router import router as notes_router
from app.modules.notifications.router import router as notifications_router

setup_logging()
logger = logging.getLogger("app.request")

if ShouldRunMigrationsOnStartup():
    RunMigrations()

app = FastAPI(title="Memo API")

origin_list = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "").split(",") if origin.strip()]
if origin_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _describe_status(status_code: int) -> tuple[int, str | None]:
    if status_code >= 500:
        return logging.ERROR, "ERROR: server error"
    if status_code == 404:
        return logging.WARNING, "ERROR: not found"
    if status_code >= 400:
        return logging.WARNING, "ERROR: client error"
    return logging.INFO, None


@app.middleware("http")
async def request_logger(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = int((time.perf_counter() - started) * 1000)

    level, label = _describe_status(response.status_code)
    parts = [f"{request.method} {request.url.path}"]
    if request.url.query:
        parts.append(f"query={request.url.query}")
    if label:
        parts.append(label)
    parts.extend([f"status={response.status_code}", f"{elapsed_ms}ms", f"id={request_id}"])
    logger.log(level, " | ".join(parts))

    response.headers["X-Request-Id"] = request_id
    return response


for module_router in (core_router, auth_router, notifications_router, notes_router):
    app.include_router(module_router)

logger.info("memo api ready")
