import logging
import os
import threading
import time
import traceback
from pathlib import Path

from alembic import command
from alembic.config import Config

from app.db import BuildAdminConnectionUrl

logger = logging.getLogger("app.migrations")
BACKEND_DIR = Path(__file__).resolve().parents[2]


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_truthy(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def ShouldRunMigrationsOnStartup() -> bool:
    return _env_truthy("RUN_MIGRATIONS_ON_STARTUP")


def BuildAlembicConfig(url: str | None = None) -> Config:
    config_path = BACKEND_DIR / "alembic.ini"
    if not config_path.exists():
        raise RuntimeError(f"Missing {config_path.name} for migrations")
    config = Config(str(config_path))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    config.set_main_option("sqlalchemy.url", url or BuildAdminConnectionUrl())
    return config


class _UpgradeJob:
    """Runs ``alembic upgrade`` on a daemon thread so the caller can watch it."""

    def __init__(self, config: Config, revision: str):
        self.Failure: str | None = None
        self.Done = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(config, revision), name="alembic-upgrade", daemon=True
        )

    def _run(self, config: Config, revision: str) -> None:
        try:
            command.upgrade(config, revision)
        except Exception:  # noqa: BLE001
            self.Failure = traceback.format_exc()
        finally:
            self.Done.set()

    def Start(self) -> None:
        self._thread.start()


def RunMigrations(revision: str = "head", url: str | None = None) -> None:
    timeout_seconds = _read_int_env("MIGRATIONS_TIMEOUT_SECONDS", 600)
    progress_seconds = max(1, _read_int_env("MIGRATIONS_PROGRESS_LOG_SECONDS", 20))
    job = _UpgradeJob(BuildAlembicConfig(url), revision)

    logger.info("upgrading schema to %s (timeout=%ss)", revision, timeout_seconds)
    started = time.monotonic()
    job.Start()
    while not job.Done.wait(timeout=progress_seconds):
        elapsed = int(time.monotonic() - started)
        if timeout_seconds > 0 and elapsed >= timeout_seconds:
            logger.error("schema upgrade timed out after %ss", elapsed)
            raise TimeoutError(f"migrations timed out after {elapsed}s")
        logger.info("schema upgrade still running (%ss elapsed)", elapsed)

    if job.Failure:
        logger.error("schema upgrade failed:\n%s", job.Failure)
        raise RuntimeError("migrations failed")
    logger.info("schema upgrade complete in %ss", int(time.monotonic() - started))
