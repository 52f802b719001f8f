import pytest

from app.modules.notes.models import NoteImage
from app.modules.notes.services.folders_service import CreateFolder
from app.modules.notes.services.notes_service import CreateNote, TrashNote
from app.modules.notes.services.search_service import (
    MAX_RESULTS,
    PAGE_SIZE,
    PREVIEW_LENGTH,
    BuildSnippet,
    ClampLimit,
    FindMatch,
    Search,
    SearchMode,
    Suggestions,
)
from app.modules.notes.services.tags_service import SetNoteTags


def test_find_match_ignores_case_and_accents():
    assert FindMatch("Visit the Café today", "cafe") == (10, 14)
    assert FindMatch("RÉSUMÉ draft", "resume") == (0, 6)
    assert FindMatch("nothing here", "cafe") is None
    assert FindMatch("", "cafe") is None


def test_build_snippet_without_keyword_returns_preview():
    content = "x" * (PREVIEW_LENGTH + 50)
    assert BuildSnippet(content, None) == "x" * PREVIEW_LENGTH
    assert BuildSnippet(None, "anything") == ""


def test_build_snippet_windows_around_match():
    content = ("a" * 200) + "needle" + ("b" * 200)
    snippet = BuildSnippet(content, "needle")
    assert snippet.startswith("...")
    assert snippet.endswith("...")
    assert "needle" in snippet
    assert len(snippet) == 150 + 6


def test_build_snippet_at_start_has_no_leading_ellipsis():
    snippet = BuildSnippet("needle and a short tail", "needle")
    assert snippet == "needle and a short tail"


def test_clamp_limit():
    assert ClampLimit(None) == PAGE_SIZE
    assert ClampLimit(0) == PAGE_SIZE
    assert ClampLimit(10) == 10
    assert ClampLimit(MAX_RESULTS + 1) == MAX_RESULTS


@pytest.fixture
def folder(db, user):
    return CreateFolder(db, user, name="Inbox", parent_id=None)


def test_full_text_search_matches_title_content_and_ocr(db, user, other_user, folder):
    by_title = CreateNote(db, user, folder_id=folder.Id, title="Budget plan", content="")
    by_content = CreateNote(db, user, folder_id=folder.Id, title="Misc", content="the budget is tight")
    by_ocr = CreateNote(db, user, folder_id=folder.Id, title="Receipt", content="")
    db.add(
        NoteImage(
            OwnerUserId=user.Id,
            NoteId=by_ocr.Id,
            StoragePath="1/2026/01/receipt.png",
            FileSizeBytes=10,
            Hash="abc",
            OcrText="BUDGET total 42",
            OcrStatus="Complete",
        )
    )
    db.commit()
    trashed = CreateNote(db, user, folder_id=folder.Id, title="Old budget", content="")
    TrashNote(db, user, trashed.Id)
    other_folder = CreateFolder(db, other_user, name="Theirs", parent_id=None)
    CreateNote(db, other_user, folder_id=other_folder.Id, title="Their budget", content="")

    result = Search(db, user, query="budget", mode=SearchMode.FullText)

    assert {hit.Note.Id for hit in result.Hits} == {by_title.Id, by_content.Id, by_ocr.Id}
    assert result.HasMore is False
    content_hit = next(hit for hit in result.Hits if hit.Note.Id == by_content.Id)
    assert content_hit.Snippet == "the budget is tight"


def test_full_text_search_is_accent_insensitive(db, user, folder):
    note = CreateNote(db, user, folder_id=folder.Id, title="Crème brûlée", content="dessert")
    result = Search(db, user, query="creme brulee", mode=SearchMode.FullText)
    assert [hit.Note.Id for hit in result.Hits] == [note.Id]


def test_tag_search_and_empty_query(db, user, folder):
    tagged = CreateNote(db, user, folder_id=folder.Id, title="Trip", content="packing list")
    CreateNote(db, user, folder_id=folder.Id, title="Travel notes", content="")
    SetNoteTags(db, user, tagged.Id, ["Travel"])

    result = Search(db, user, query="trav", mode=SearchMode.Tag)
    assert [hit.Note.Id for hit in result.Hits] == [tagged.Id]
    assert result.Hits[0].Snippet == "packing list"

    empty = Search(db, user, query="   ", mode=SearchMode.Tag)
    assert empty.Hits == []
    assert empty.Query == ""


def test_search_reports_has_more(db, user, folder):
    for index in range(3):
        CreateNote(db, user, folder_id=folder.Id, title=f"Log {index}", content="")
    result = Search(db, user, query="log", mode=SearchMode.FullText, limit=2)
    assert len(result.Hits) == 2
    assert result.HasMore is True


def test_suggestions_combine_titles_and_tags(db, user, folder):
    note = CreateNote(db, user, folder_id=folder.Id, title="Garden plan", content="")
    CreateNote(db, user, folder_id=folder.Id, title="Garden plan", content="")
    SetNoteTags(db, user, note.Id, ["gardening"])

    assert Suggestions(db, user, "g") == []
    assert Suggestions(db, user, "gar") == ["Garden plan", "#gardening"]


def test_wildcard_characters_match_literally(db, user, folder):
    CreateNote(db, user, folder_id=folder.Id, title="Grocery list", content="")
    CreateNote(db, user, folder_id=folder.Id, title="axb", content="")
    literal = CreateNote(db, user, folder_id=folder.Id, title="Discount", content="save 20% on a_b parts")

    assert [hit.Note.Id for hit in Search(db, user, query="%").Hits] == [literal.Id]
    assert [hit.Note.Id for hit in Search(db, user, query="a_b").Hits] == [literal.Id]
    assert Search(db, user, query="x%y").Hits == []
    assert Suggestions(db, user, "__") == []


def test_tag_search_and_suggestions_fold_non_ascii(db, user, folder):
    note = CreateNote(db, user, folder_id=folder.Id, title="Приветствие", content="")
    SetNoteTags(db, user, note.Id, ["Привет", "Éte"])

    assert [hit.Note.Id for hit in Search(db, user, query="привет", mode=SearchMode.Tag).Hits] == [note.Id]
    assert [hit.Note.Id for hit in Search(db, user, query="ete", mode=SearchMode.Tag).Hits] == [note.Id]
    assert Suggestions(db, user, "привет") == ["Приветствие", "#Привет"]
