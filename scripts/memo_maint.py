#!/usr/bin/env python3
"""
memo_maint.py - Scheduled maintenance for the memo backend.

Usage examples:
  python scripts/memo_maint.py run-reminders
  python scripts/memo_maint.py purge-trash --days 30
  python scripts/memo_maint.py purge-trash --days 7 --user-id 3 --json
  python scripts/memo_maint.py --env-file /path/to/.env run-reminders

Commands:
  run-reminders
    Fire every due reminder, create ReminderDue notifications and move
    repeating reminders to their next date.
  purge-trash --days N [--user-id ID]
    Permanently delete trashed notes and folders trashed more than N days ago,
    for one user or for every user.

Flags:
  --env-file PATH
    Load environment variables from PATH (default: .env, skipped when absent).
  --json
    Print the result as JSON.
"""
import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parents[1] / "backend"
sys.path.append(str(BACKEND_DIR))

from app.core.logging import setup_logging  # noqa: E402
from app.db import OpenSession  # noqa: E402
from app.modules.auth.deps import ADMIN_ROLE, UserContext  # noqa: E402
from app.modules.auth.models import User  # noqa: E402
from app.modules.notes.services.reminders_service import RunDueReminders  # noqa: E402
from app.modules.notes.services.trash_service import PurgeTrash  # noqa: E402

DEFAULT_ENV_PATH = ".env"
DEFAULT_PURGE_DAYS = 30
# Never a real account: user ids start at 1.
MAINTENANCE_USER_ID = 0

logger = logging.getLogger("app.maintenance")


def LoadEnvFile(EnvPath: str, Required: bool) -> None:
    if not EnvPath:
        return
    if not os.path.exists(EnvPath):
        if Required:
            raise RuntimeError(f"Env file not found: {EnvPath}")
        return
    load_dotenv(dotenv_path=EnvPath)


def MaintenanceUser() -> UserContext:
    return UserContext(Id=MAINTENANCE_USER_ID, Username="maintenance", Role=ADMIN_ROLE)


def RunReminders() -> dict:
    Db = OpenSession()
    try:
        Result = RunDueReminders(Db, MaintenanceUser())
    finally:
        Db.close()
    return asdict(Result)


def PurgeTrashForUsers(Days: int, UserId: int | None) -> dict:
    Totals = {"Users": 0, "NotesDeleted": 0, "FoldersDeleted": 0, "ImagesDeleted": 0}
    Db = OpenSession()
    try:
        Query = Db.query(User)
        if UserId is not None:
            Query = Query.filter(User.Id == UserId)
        Users = Query.order_by(User.Id.asc()).all()
        if UserId is not None and not Users:
            raise RuntimeError(f"User not found: {UserId}")
        for Record in Users:
            Context = UserContext(Id=Record.Id, Username=Record.Username, Role=Record.Role)
            Result = PurgeTrash(Db, Context, older_than_days=Days)
            Totals["Users"] += 1
            Totals["NotesDeleted"] += Result.NotesDeleted
            Totals["FoldersDeleted"] += Result.FoldersDeleted
            Totals["ImagesDeleted"] += Result.ImagesDeleted
    finally:
        Db.close()
    return Totals


def PrintResult(Title: str, Result: dict, AsJson: bool) -> None:
    if AsJson:
        print(json.dumps(Result, indent=2))
        return
    print(Title)
    Width = max(len(Key) for Key in Result)
    for Key, Value in Result.items():
        print(f"  {Key.ljust(Width)}  {Value}")


def ParseArgs(Argv: list[str] | None = None) -> argparse.Namespace:
    Parser = argparse.ArgumentParser(description="Memo backend maintenance tasks.")
    Parser.add_argument(
        "--env-file",
        default=None,
        help=f"Path to .env file (default: {DEFAULT_ENV_PATH} when present).",
    )
    Parser.add_argument("--json", action="store_true", help="Output results as JSON.")
    Commands = Parser.add_subparsers(dest="command", required=True)
    Commands.add_parser("run-reminders", help="Fire due reminders.")
    Purge = Commands.add_parser("purge-trash", help="Delete old trashed notes and folders.")
    Purge.add_argument(
        "--days",
        type=int,
        default=DEFAULT_PURGE_DAYS,
        help=f"Only purge items trashed more than N days ago (default: {DEFAULT_PURGE_DAYS}).",
    )
    Purge.add_argument("--user-id", type=int, help="Limit the purge to one user.")
    Args = Parser.parse_args(Argv)
    if Args.command == "purge-trash" and Args.days < 0:
        Parser.error("--days must be zero or greater.")
    return Args


def Main(Argv: list[str] | None = None) -> int:
    Args = ParseArgs(Argv)
    try:
        LoadEnvFile(Args.env_file or DEFAULT_ENV_PATH, Required=Args.env_file is not None)
        setup_logging()
        if Args.command == "run-reminders":
            PrintResult("Reminder run", RunReminders(), Args.json)
        else:
            PrintResult("Trash purge", PurgeTrashForUsers(Args.days, Args.user_id), Args.json)
    except KeyboardInterrupt:
        return 130
    except RuntimeError as Ex:
        logger.error("maintenance failed: %s", Ex)
        print(f"Error: {Ex}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(Main())
