from datetime import timedelta

from app.modules.auth.deps import NowUtc
from app.modules.notes.image_storage import ResolveImagePath
from app.modules.notes.models import Folder, Note
from app.modules.notes.services.folders_service import CreateFolder, TrashFolder
from app.modules.notes.services.images_service import AddImage
from app.modules.notes.services.notes_service import CreateNote, TrashNote
from app.modules.notes.services.trash_service import EmptyTrash, ListTrash, PurgeTrash, TrashCount


def test_list_trash_and_count(db, user, other_user):
    folder = CreateFolder(db, user, name="Projects", parent_id=None)
    keep = CreateFolder(db, user, name="Keep", parent_id=None)
    note = CreateNote(db, user, folder_id=keep.Id, title="Loose", content="")
    CreateNote(db, user, folder_id=folder.Id, title="Nested", content="")
    TrashFolder(db, user, folder.Id)
    TrashNote(db, user, note.Id)

    listing = ListTrash(db, user)
    assert [record.Name for record in listing.Folders] == ["Projects"]
    assert {record.Title for record in listing.Notes} == {"Loose", "Nested"}
    assert TrashCount(db, user) == 3
    assert TrashCount(db, other_user) == 0


def test_empty_trash_deletes_records_and_files(db, user, png_bytes):
    folder = CreateFolder(db, user, name="Old", parent_id=None)
    child = CreateFolder(db, user, name="Older", parent_id=folder.Id)
    note = CreateNote(db, user, folder_id=child.Id, title="Scan", content="")
    image = AddImage(db, user, note.Id, data=png_bytes, filename="scan.png", content_type="image/png")
    image_path = ResolveImagePath(image.StoragePath)
    assert image_path.exists()

    TrashFolder(db, user, folder.Id)
    result = EmptyTrash(db, user)

    assert result.NotesDeleted == 1
    assert result.FoldersDeleted == 2
    assert result.ImagesDeleted == 1
    assert not image_path.exists()
    db.expire_all()
    assert db.get(Folder, folder.Id) is None
    assert db.get(Note, note.Id) is None
    assert TrashCount(db, user) == 0


def test_empty_trash_leaves_live_items(db, user):
    folder = CreateFolder(db, user, name="Live", parent_id=None)
    live = CreateNote(db, user, folder_id=folder.Id, title="Live", content="")
    dead = CreateNote(db, user, folder_id=folder.Id, title="Dead", content="")
    TrashNote(db, user, dead.Id)

    EmptyTrash(db, user)

    db.expire_all()
    assert db.get(Note, live.Id) is not None
    assert db.get(Note, dead.Id) is None
    assert db.get(Folder, folder.Id) is not None


def test_purge_trash_respects_cutoff(db, user):
    folder = CreateFolder(db, user, name="Inbox", parent_id=None)
    old = CreateNote(db, user, folder_id=folder.Id, title="Old", content="")
    recent = CreateNote(db, user, folder_id=folder.Id, title="Recent", content="")
    TrashNote(db, user, old.Id)
    TrashNote(db, user, recent.Id)
    old_record = db.get(Note, old.Id)
    old_record.TrashedAt = NowUtc() - timedelta(days=45)
    db.commit()

    result = PurgeTrash(db, user, older_than_days=30)

    assert result.NotesDeleted == 1
    db.expire_all()
    assert db.get(Note, old.Id) is None
    assert db.get(Note, recent.Id) is not None
