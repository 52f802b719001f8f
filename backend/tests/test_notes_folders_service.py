import pytest

from app.modules.notes.models import Folder, Note
from app.modules.notes.services.common import NotesNotFoundError, NotesValidationError
from app.modules.notes.services.folders_service import (
    DEFAULT_FOLDER_NAME,
    BuildFolderPath,
    CollectDescendantIds,
    CreateFolder,
    GetFolderSummary,
    ListChildFolders,
    ListMoveTargets,
    ListRootFolders,
    MoveFolder,
    PermanentlyDeleteFolder,
    RenameFolder,
    RestoreFolder,
    TrashFolder,
)
from app.modules.notes.services.notes_service import CreateNote


def test_build_folder_path_joins_ancestors():
    root = Folder(Id=1, Name="Work", ParentFolderId=None)
    child = Folder(Id=2, Name="Projects", ParentFolderId=1)
    leaf = Folder(Id=3, Name="Memo", ParentFolderId=2)
    folders_by_id = {record.Id: record for record in (root, child, leaf)}
    assert BuildFolderPath(leaf, folders_by_id) == "Work/Projects/Memo"
    assert BuildFolderPath(root, folders_by_id) == "Work"


def test_collect_descendant_ids_walks_the_tree():
    folders = [
        Folder(Id=1, ParentFolderId=None),
        Folder(Id=2, ParentFolderId=1),
        Folder(Id=3, ParentFolderId=2),
        Folder(Id=4, ParentFolderId=None),
    ]
    assert CollectDescendantIds(1, folders) == {2, 3}
    assert CollectDescendantIds(4, folders) == set()


def test_create_folder_defaults_name_and_nests(db, user):
    root = CreateFolder(db, user, name="  ", parent_id=None)
    child = CreateFolder(db, user, name="Recipes", parent_id=root.Id)

    assert root.Name == DEFAULT_FOLDER_NAME
    assert child.ParentFolderId == root.Id
    assert [record.Id for record in ListRootFolders(db, user)] == [root.Id]
    assert [record.Id for record in ListChildFolders(db, user, root.Id)] == [child.Id]

    summary = GetFolderSummary(db, user, child.Id)
    assert summary.FullPath == f"{DEFAULT_FOLDER_NAME}/Recipes"


def test_folders_are_private_to_their_owner(db, user, other_user):
    folder = CreateFolder(db, user, name="Private", parent_id=None)
    with pytest.raises(NotesNotFoundError):
        GetFolderSummary(db, other_user, folder.Id)
    assert ListRootFolders(db, other_user) == []


def test_rename_folder_rejects_empty_name(db, user):
    folder = CreateFolder(db, user, name="Draft", parent_id=None)
    with pytest.raises(NotesValidationError):
        RenameFolder(db, user, folder.Id, "   ")
    renamed = RenameFolder(db, user, folder.Id, " Final ")
    assert renamed.Name == "Final"


def test_move_folder_rejects_cycles(db, user):
    parent = CreateFolder(db, user, name="Parent", parent_id=None)
    child = CreateFolder(db, user, name="Child", parent_id=parent.Id)
    grandchild = CreateFolder(db, user, name="Grandchild", parent_id=child.Id)

    with pytest.raises(NotesValidationError):
        MoveFolder(db, user, parent.Id, parent.Id)
    with pytest.raises(NotesValidationError):
        MoveFolder(db, user, parent.Id, grandchild.Id)

    moved = MoveFolder(db, user, grandchild.Id, None)
    assert moved.ParentFolderId is None
    target_ids = {entry.Folder.Id for entry in ListMoveTargets(db, user, parent.Id)}
    assert target_ids == {grandchild.Id}


def test_trash_and_restore_folder_cascades_to_subtree(db, user):
    parent = CreateFolder(db, user, name="Parent", parent_id=None)
    child = CreateFolder(db, user, name="Child", parent_id=parent.Id)
    note = CreateNote(db, user, folder_id=child.Id, title="Inside", content="text")

    TrashFolder(db, user, parent.Id)
    db.expire_all()
    assert db.get(Folder, child.Id).IsInTrash
    assert db.get(Note, note.Id).IsInTrash
    assert ListRootFolders(db, user) == []

    RestoreFolder(db, user, parent.Id)
    db.expire_all()
    assert not db.get(Folder, parent.Id).IsInTrash
    assert not db.get(Folder, child.Id).IsInTrash
    assert not db.get(Note, note.Id).IsInTrash


def test_restore_child_folder_restores_trashed_ancestors(db, user):
    parent = CreateFolder(db, user, name="Parent", parent_id=None)
    child = CreateFolder(db, user, name="Child", parent_id=parent.Id)
    TrashFolder(db, user, parent.Id)

    RestoreFolder(db, user, child.Id)
    db.expire_all()
    assert not db.get(Folder, parent.Id).IsInTrash
    assert not db.get(Folder, child.Id).IsInTrash


def test_cannot_create_inside_trashed_folder(db, user):
    folder = CreateFolder(db, user, name="Old", parent_id=None)
    TrashFolder(db, user, folder.Id)
    with pytest.raises(NotesValidationError):
        CreateFolder(db, user, name="New", parent_id=folder.Id)
    with pytest.raises(NotesValidationError):
        CreateNote(db, user, folder_id=folder.Id, title="Nope", content="")


def test_permanently_delete_folder_removes_subtree(db, user):
    parent = CreateFolder(db, user, name="Parent", parent_id=None)
    child = CreateFolder(db, user, name="Child", parent_id=parent.Id)
    note = CreateNote(db, user, folder_id=child.Id, title="Inside", content="")

    PermanentlyDeleteFolder(db, user, parent.Id)
    db.expire_all()
    assert db.get(Folder, parent.Id) is None
    assert db.get(Folder, child.Id) is None
    assert db.get(Note, note.Id) is None


def test_move_targets_are_sorted_by_name(db, user):
    moving = CreateFolder(db, user, name="Moving", parent_id=None)
    zoo = CreateFolder(db, user, name="Zoo", parent_id=None)
    apples = CreateFolder(db, user, name="apples", parent_id=zoo.Id)
    bins = CreateFolder(db, user, name="Bins", parent_id=None)

    targets = ListMoveTargets(db, user, moving.Id)

    assert [entry.Folder.Id for entry in targets] == [apples.Id, bins.Id, zoo.Id]
    assert targets[0].FullPath == "Zoo/apples"
