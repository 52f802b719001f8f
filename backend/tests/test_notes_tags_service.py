import pytest

from app.modules.notes.services.common import NotesNotFoundError, NotesValidationError
from app.modules.notes.services.folders_service import CreateFolder
from app.modules.notes.services.notes_service import CreateNote, TrashNote
from app.modules.notes.services.tags_service import (
    AddTagToNote,
    CreateTag,
    DeleteTag,
    ListNotesForTag,
    ListTags,
    ListTagsForNote,
    NormalizeTagKey,
    RemoveTagFromNote,
    RenameTag,
    SetNoteTags,
)


@pytest.fixture
def note(db, user):
    folder = CreateFolder(db, user, name="Inbox", parent_id=None)
    return CreateNote(db, user, folder_id=folder.Id, title="Tagged", content="")


def test_normalize_tag_key_folds_case_and_spaces():
    assert NormalizeTagKey("  Work   Items ") == "work items"


def test_create_tag_is_case_insensitive(db, user):
    first = CreateTag(db, user, "Work")
    second = CreateTag(db, user, "work")
    assert first.Id == second.Id
    with pytest.raises(NotesValidationError):
        CreateTag(db, user, "   ")


def test_set_note_tags_replaces_and_dedupes(db, user, note):
    tags = SetNoteTags(db, user, note.Id, ["Travel", "travel", "", "Ideas"])
    assert [tag.Name for tag in tags] == ["Ideas", "Travel"]

    tags = SetNoteTags(db, user, note.Id, ["Ideas"])
    assert [tag.Name for tag in tags] == ["Ideas"]


def test_add_and_remove_tag_are_idempotent(db, user, note):
    tag = CreateTag(db, user, "Later")
    AddTagToNote(db, user, note.Id, tag.Id)
    tags = AddTagToNote(db, user, note.Id, tag.Id)
    assert [entry.Id for entry in tags] == [tag.Id]

    RemoveTagFromNote(db, user, note.Id, tag.Id)
    assert RemoveTagFromNote(db, user, note.Id, tag.Id) == []
    assert ListTagsForNote(db, user, note.Id) == []


def test_list_tags_counts_live_notes(db, user, note):
    SetNoteTags(db, user, note.Id, ["Work"])
    counts = {entry.Tag.Name: entry.NoteCount for entry in ListTags(db, user)}
    assert counts == {"Work": 1}

    TrashNote(db, user, note.Id)
    counts = {entry.Tag.Name: entry.NoteCount for entry in ListTags(db, user)}
    assert counts == {"Work": 0}


def test_rename_tag_rejects_clash(db, user):
    CreateTag(db, user, "Home")
    other = CreateTag(db, user, "Office")
    with pytest.raises(NotesValidationError):
        RenameTag(db, user, other.Id, "home")
    renamed = RenameTag(db, user, other.Id, "Workplace")
    assert renamed.Name == "Workplace"


def test_delete_tag_unlinks_notes(db, user, note):
    tag = SetNoteTags(db, user, note.Id, ["Temp"])[0]
    assert [entry.Id for entry in ListNotesForTag(db, user, tag.Id)] == [note.Id]

    DeleteTag(db, user, tag.Id)
    db.expire_all()
    assert ListTagsForNote(db, user, note.Id) == []
    with pytest.raises(NotesNotFoundError):
        ListNotesForTag(db, user, tag.Id)


def test_tags_are_private(db, user, other_user):
    tag = CreateTag(db, user, "Secret")
    with pytest.raises(NotesNotFoundError):
        RenameTag(db, other_user, tag.Id, "Leaked")
