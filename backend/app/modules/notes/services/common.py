from sqlalchemy.orm import Session

from app.modules.auth.deps import UserContext
from app.modules.notes.models import Folder, Note, NoteImage, Reminder, Tag
from app.modules.notes.utils.rbac import CanAccessRecord


class NotesNotFoundError(ValueError):
    pass


class NotesValidationError(ValueError):
    pass


class NotesAccessError(ValueError):
    pass


def _GetOwned(db: Session, user: UserContext, model, record_id: int, label: str):
    record = db.query(model).filter(model.Id == record_id).first()
    # Another user's record is reported as missing rather than forbidden.
    if not record or not CanAccessRecord(user, record.OwnerUserId):
        raise NotesNotFoundError(f"{label} not found")
    return record


def GetOwnedFolder(db: Session, user: UserContext, folder_id: int) -> Folder:
    return _GetOwned(db, user, Folder, folder_id, "Folder")


def GetOwnedNote(db: Session, user: UserContext, note_id: int) -> Note:
    return _GetOwned(db, user, Note, note_id, "Note")


def GetOwnedTag(db: Session, user: UserContext, tag_id: int) -> Tag:
    return _GetOwned(db, user, Tag, tag_id, "Tag")


def GetOwnedReminder(db: Session, user: UserContext, reminder_id: int) -> Reminder:
    return _GetOwned(db, user, Reminder, reminder_id, "Reminder")


def GetOwnedImage(db: Session, user: UserContext, image_id: int) -> NoteImage:
    return _GetOwned(db, user, NoteImage, image_id, "Image")


def GetWritableFolder(db: Session, user: UserContext, folder_id: int) -> Folder:
    folder = GetOwnedFolder(db, user, folder_id)
    if folder.IsInTrash:
        raise NotesValidationError("Folder is in the trash")
    return folder


def NormalizeName(value: str | None) -> str:
    return (value or "").strip()
