import json
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_DIR = Path(__file__).resolve().parents[2] / "logs"
QUIET_LOGGERS = ("uvicorn.access", "PIL", "multipart")


class LocalTimeFormatter(logging.Formatter):
    converter = time.localtime


def _rotating_handler(path: str, level: str, formatter: logging.Formatter) -> RotatingFileHandler:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", "5000000")),
        backupCount=int(os.getenv("LOG_BACKUP_COUNT", "5")),
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """Console logging plus rotating files for the API and for client-posted logs.

    Setting ``LOG_FILE_PATH`` to an empty string keeps everything on the console.
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_file_path = os.getenv("LOG_FILE_PATH", str(DEFAULT_LOG_DIR / "backend.log")).strip()
    default_frontend_path = str(Path(log_file_path).with_name("frontend.log")) if log_file_path else ""
    frontend_log_file_path = os.getenv("FRONTEND_LOG_FILE_PATH", default_frontend_path).strip()
    formatter = LocalTimeFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    frontend_logger = logging.getLogger("frontend")
    frontend_logger.handlers.clear()
    frontend_logger.propagate = False
    frontend_logger.setLevel(log_level)
    frontend_logger.addHandler(console_handler)

    if log_file_path:
        root_logger.addHandler(_rotating_handler(log_file_path, log_level, formatter))
    if frontend_log_file_path:
        frontend_logger.addHandler(_rotating_handler(frontend_log_file_path, log_level, formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def format_frontend_message(message: str, context: dict | None = None) -> str:
    if not context:
        return message
    return json.dumps({"message": message, "context": context}, separators=(",", ":"), default=str)
