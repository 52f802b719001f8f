"""Note search: full-text and tag modes, snippets and query suggestions."""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass, field

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.modules.auth.deps import UserContext
from app.modules.notes.models import Note, NoteImage, NoteTagLink, Tag

logger = logging.getLogger("app.notes.search")

PAGE_SIZE = 50
MAX_RESULTS = 500
SNIPPET_WINDOW = 150
SNIPPET_LEAD = 75
PREVIEW_LENGTH = 200
SUGGESTION_MIN_LENGTH = 2
MAX_TITLE_SUGGESTIONS = 5
MAX_TAG_SUGGESTIONS = 3


class SearchMode:
    FullText = "fulltext"
    Tag = "tag"


@dataclass
class SearchHit:
    Note: Note
    Snippet: str


@dataclass
class SearchResult:
    Query: str
    Mode: str
    Hits: list[SearchHit] = field(default_factory=list)
    HasMore: bool = False


def _Fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.casefold()


def _FoldWithIndexMap(value: str) -> tuple[str, list[int]]:
    """Fold ``value`` and keep, per folded character, its index in the original."""
    folded: list[str] = []
    index_map: list[int] = []
    for index, char in enumerate(value):
        for piece in _Fold(char):
            folded.append(piece)
            index_map.append(index)
    return "".join(folded), index_map


def FindMatch(text: str, keyword: str) -> tuple[int, int] | None:
    """Locate ``keyword`` in ``text`` ignoring case and diacritics.

    Returns ``(start, end)`` offsets into the original text.
    """
    needle = _Fold(keyword.strip())
    if not text or not needle:
        return None
    folded, index_map = _FoldWithIndexMap(text)
    position = folded.find(needle)
    if position < 0:
        return None
    start = index_map[position]
    end = index_map[position + len(needle) - 1] + 1
    return start, end


def BuildSnippet(content: str | None, keyword: str | None) -> str:
    text = content or ""
    match = FindMatch(text, keyword or "") if keyword else None
    if match is None:
        return text[:PREVIEW_LENGTH]
    start, end = match
    window_start = max(0, start - SNIPPET_LEAD)
    window_end = min(len(text), max(end, window_start + SNIPPET_WINDOW))
    snippet = text[window_start:window_end]
    if window_start > 0:
        snippet = "..." + snippet
    if window_end < len(text):
        snippet = snippet + "..."
    return snippet


def ClampLimit(limit: int | None) -> int:
    if not limit or limit < 1:
        return PAGE_SIZE
    return min(limit, MAX_RESULTS)


LIKE_ESCAPE = "\\"


def _Needle(query: str) -> str:
    escaped = (
        query.strip()
        .lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _FoldedContains(value: str | None, query: str) -> bool:
    needle = _Fold(query.strip())
    return bool(needle) and needle in _Fold(value or "")


def _MatchesFolded(note: Note, ocr_texts: list[str], query: str) -> bool:
    haystacks = [note.Title, note.Content, *ocr_texts]
    return any(_FoldedContains(value, query) for value in haystacks)


def _FullTextCandidates(db: Session, user: UserContext, query: str) -> list[Note]:
    needle = _Needle(query)
    image_match = (
        db.query(NoteImage.NoteId)
        .filter(
            NoteImage.OwnerUserId == user.Id,
            func.lower(NoteImage.OcrText).like(needle, escape=LIKE_ESCAPE),
        )
    )
    return (
        db.query(Note)
        .filter(
            Note.OwnerUserId == user.Id,
            Note.IsInTrash == False,  # noqa: E712
            or_(
                func.lower(Note.Title).like(needle, escape=LIKE_ESCAPE),
                func.lower(Note.Content).like(needle, escape=LIKE_ESCAPE),
                Note.Id.in_(image_match),
            ),
        )
        .order_by(Note.UpdatedAt.desc(), Note.Id.desc())
        .all()
    )


def _DiacriticCandidates(db: Session, user: UserContext, query: str, known_ids: set[int]) -> list[Note]:
    # SQL LIKE is accent-sensitive on most collations; re-check the remainder in Python.
    remaining = (
        db.query(Note)
        .filter(
            Note.OwnerUserId == user.Id,
            Note.IsInTrash == False,  # noqa: E712
        )
        .all()
    )
    remaining = [note for note in remaining if note.Id not in known_ids]
    if not remaining:
        return []
    ocr_by_note: dict[int, list[str]] = {}
    for image in (
        db.query(NoteImage)
        .filter(NoteImage.NoteId.in_([note.Id for note in remaining]), NoteImage.OcrText.isnot(None))
        .all()
    ):
        ocr_by_note.setdefault(image.NoteId, []).append(image.OcrText)
    return [note for note in remaining if _MatchesFolded(note, ocr_by_note.get(note.Id, []), query)]


def _SortNotes(notes: list[Note]) -> list[Note]:
    return sorted(notes, key=lambda note: (note.UpdatedAt, note.Id), reverse=True)


def SearchFullText(db: Session, user: UserContext, query: str) -> list[Note]:
    notes = _FullTextCandidates(db, user, query)
    extra = _DiacriticCandidates(db, user, query, {note.Id for note in notes})
    if extra:
        notes = _SortNotes(notes + extra)
    return notes


def SearchByTag(db: Session, user: UserContext, query: str) -> list[Note]:
    # SQLite lower() only folds ASCII, so tag names are matched in Python.
    tag_ids = [
        row.Id
        for row in db.query(Tag.Id, Tag.Name).filter(Tag.OwnerUserId == user.Id).all()
        if _FoldedContains(row.Name, query)
    ]
    if not tag_ids:
        return []
    note_ids = (
        db.query(NoteTagLink.NoteId)
        .filter(NoteTagLink.TagId.in_(tag_ids))
        .distinct()
    )
    return (
        db.query(Note)
        .filter(
            Note.Id.in_(note_ids),
            Note.IsInTrash == False,  # noqa: E712
        )
        .order_by(Note.UpdatedAt.desc(), Note.Id.desc())
        .all()
    )


def Search(
    db: Session,
    user: UserContext,
    *,
    query: str | None,
    mode: str = SearchMode.FullText,
    limit: int | None = PAGE_SIZE,
) -> SearchResult:
    normalized = (query or "").strip()
    resolved_mode = mode if mode in {SearchMode.FullText, SearchMode.Tag} else SearchMode.FullText
    result = SearchResult(Query=normalized, Mode=resolved_mode)
    if not normalized:
        return result

    limit = ClampLimit(limit)
    if resolved_mode == SearchMode.Tag:
        notes = SearchByTag(db, user, normalized)
    else:
        notes = SearchFullText(db, user, normalized)

    result.HasMore = len(notes) > limit
    keyword = normalized if resolved_mode == SearchMode.FullText else None
    result.Hits = [SearchHit(Note=note, Snippet=BuildSnippet(note.Content, keyword)) for note in notes[:limit]]
    logger.debug("search mode=%s hits=%s has_more=%s", resolved_mode, len(result.Hits), result.HasMore)
    return result


def Suggestions(db: Session, user: UserContext, query: str | None) -> list[str]:
    normalized = (query or "").strip()
    if len(normalized) < SUGGESTION_MIN_LENGTH:
        return []
    suggestions: list[str] = []

    title_rows = (
        db.query(Note.Title)
        .filter(
            Note.OwnerUserId == user.Id,
            Note.IsInTrash == False,  # noqa: E712
        )
        .order_by(Note.UpdatedAt.desc(), Note.Id.desc())
        .all()
    )
    for row in title_rows:
        if not _FoldedContains(row.Title, normalized):
            continue
        if row.Title not in suggestions:
            suggestions.append(row.Title)
        if len(suggestions) >= MAX_TITLE_SUGGESTIONS:
            break

    tag_rows = (
        db.query(Tag.Name)
        .filter(Tag.OwnerUserId == user.Id)
        .order_by(Tag.Name.asc())
        .all()
    )
    matching_tags = [row.Name for row in tag_rows if _FoldedContains(row.Name, normalized)]
    for name in matching_tags[:MAX_TAG_SUGGESTIONS]:
        entry = f"#{name}"
        if entry not in suggestions:
            suggestions.append(entry)
    return suggestions
