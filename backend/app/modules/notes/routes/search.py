from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.orm import Session

from app.db import GetDb
from app.modules.auth.deps import RequireAuthenticated, UserContext
from app.modules.notes.routes.common import _BuildNoteOut, _handle_db_error
from app.modules.notes.schemas import SearchHitOut, SearchModeParam, SearchResponse, SuggestionsResponse
from app.modules.notes.services.search_service import PAGE_SIZE, ClampLimit, Search, Suggestions

router = APIRouter()


@router.get("", response_model=SearchResponse)
def SearchNotes(
    q: str = Query(default=""),
    mode: SearchModeParam = Query(default=SearchModeParam.FullText),
    limit: int = Query(default=PAGE_SIZE, ge=1),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> SearchResponse:
    try:
        result = Search(db, user, query=q, mode=mode.value, limit=limit)
    except ProgrammingError as exc:
        _handle_db_error(exc)
    return SearchResponse(
        Query=result.Query,
        Mode=SearchModeParam(result.Mode),
        Limit=ClampLimit(limit),
        HasMore=result.HasMore,
        Results=[SearchHitOut(Note=_BuildNoteOut(hit.Note), Snippet=hit.Snippet) for hit in result.Hits],
    )


@router.get("/suggestions", response_model=SuggestionsResponse)
def SearchSuggestions(
    q: str = Query(default=""),
    db: Session = Depends(GetDb),
    user: UserContext = Depends(RequireAuthenticated),
) -> SuggestionsResponse:
    try:
        return SuggestionsResponse(Suggestions=Suggestions(db, user, q))
    except ProgrammingError as exc:
        _handle_db_error(exc)
