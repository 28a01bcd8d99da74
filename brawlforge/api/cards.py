"""
Card API endpoints.

Search the imported card pool, list set release dates, and trigger or
inspect card imports.
"""

from datetime import datetime
from functools import lru_cache
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from brawlforge.config import UNKNOWN_RELEASE_DATE, settings
from brawlforge.db.database import async_session_factory
from brawlforge.db.gateway import CardGateway, SqlAlchemyCardGateway
from brawlforge.models.failure import BulkDataFetchError, ImportInProgressError
from brawlforge.services.card_import import CardImportService
from brawlforge.services.card_search import DEFAULT_SEARCH_LIMIT, CardSearchService
from brawlforge.services.debug import make_watch_sink
from brawlforge.services.scryfall_client import ScryfallBulkClient
from brawlforge.services.version_selector import load_sets_in_date_range

router = APIRouter(prefix="/cards", tags=["cards"])


# --- Dependencies ---


def get_gateway() -> CardGateway:
    return SqlAlchemyCardGateway(async_session_factory)


@lru_cache(maxsize=1)
def get_import_service() -> CardImportService:
    """
    The process-wide import service.

    Shared so that concurrent requests see the same in-progress run.
    """
    return CardImportService(
        ScryfallBulkClient(),
        SqlAlchemyCardGateway(async_session_factory),
        debug_sink=make_watch_sink(settings.watch_cards),
    )


# --- Response models ---


class CardResponse(BaseModel):
    """A stored card."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    oracle_id: str
    name: str
    original_name: str
    search_key: str
    mana_cost: str | None = None
    cmc: float = 0.0
    type_line: str = ""
    oracle_text: str | None = None
    colors: list[str] = Field(default_factory=list)
    color_identity: list[str] = Field(default_factory=list)
    rarity: str = ""
    set_code: str = ""
    legal_set_codes: list[str] = Field(default_factory=list)
    can_be_commander: bool = False
    can_be_companion: bool = False
    companion_restriction: str | None = None
    image_uris: dict[str, Any] | None = None
    back_image_uris: dict[str, Any] | None = None
    display_hints: dict[str, Any] = Field(default_factory=dict)
    scryfall_uri: str | None = None


class SearchResponse(BaseModel):
    """Response model for card search."""

    query: str
    normalized_query: str
    total_count: int
    cards: list[CardResponse] = Field(default_factory=list)


class SetResponse(BaseModel):
    """A set and its release date, as saved by the last import."""

    set_code: str
    released_at: str


class ImportProgressResponse(BaseModel):
    status: str
    message: str
    total_cards: int | None = None
    processed_cards: int | None = None
    saved_cards: int | None = None
    error_count: int | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None


class ImportStatusResponse(BaseModel):
    """Response model for import status."""

    has_cards: bool
    card_count: int
    last_import: datetime | None = None
    is_import_in_progress: bool = False
    last_progress: ImportProgressResponse | None = None


class ImportResultResponse(BaseModel):
    """Response model for a finished import run."""

    success: bool
    total_processed: int
    total_saved: int
    total_skipped: int
    total_errors: int
    duration: float
    errors: list[str] = Field(default_factory=list)


# --- Endpoints ---


@router.get("/search", response_model=SearchResponse)
async def search_cards(
    gateway: Annotated[CardGateway, Depends(get_gateway)],
    q: Annotated[str, Query(description='Card name; wrap in quotes for exact match')] = "",
    limit: Annotated[int, Query(ge=1, le=500)] = DEFAULT_SEARCH_LIMIT,
    exact: bool = False,
) -> SearchResponse:
    """
    Search cards by name.

    Alchemy prefixes, accents, punctuation and split-card separators are
    ignored. Unquoted queries fall back to prefix matching when nothing
    matches exactly.
    """
    result = await CardSearchService(gateway).search_cards(q, limit=limit, exact_match=exact)

    if result.error is not None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Card search failed: {result.error}",
        )

    return SearchResponse(
        query=result.query,
        normalized_query=result.normalized_query,
        total_count=result.total_count,
        cards=[CardResponse.model_validate(card) for card in result.records],
    )


@router.get("/sets", response_model=list[SetResponse])
async def list_sets(
    gateway: Annotated[CardGateway, Depends(get_gateway)],
    start: Annotated[str, Query(description="Earliest release date, YYYY-MM-DD")] = (
        UNKNOWN_RELEASE_DATE
    ),
    end: Annotated[str, Query(description="Latest release date, YYYY-MM-DD")] = "9999-12-31",
) -> list[SetResponse]:
    """Sets released between start and end inclusive, oldest first."""
    sets = await load_sets_in_date_range(gateway, start, end)
    return [SetResponse(set_code=code, released_at=released) for code, released in sets]


@router.get("/import/status", response_model=ImportStatusResponse)
async def import_status(
    service: Annotated[CardImportService, Depends(get_import_service)],
) -> ImportStatusResponse:
    """Stored card count, last import time and the current run, if any."""
    summary = await service.get_import_status()

    progress = None
    if summary.last_progress is not None:
        last = summary.last_progress
        progress = ImportProgressResponse(
            status=last.status.value,
            message=last.message,
            total_cards=last.total_cards,
            processed_cards=last.processed_cards,
            saved_cards=last.saved_cards,
            error_count=last.error_count,
            started_at=last.started_at,
            ended_at=last.ended_at,
        )

    return ImportStatusResponse(
        has_cards=summary.has_cards,
        card_count=summary.card_count,
        last_import=summary.last_import,
        is_import_in_progress=summary.is_import_in_progress,
        last_progress=progress,
    )


@router.post(
    "/import",
    response_model=ImportResultResponse,
    responses={409: {"description": "Import already in progress"}},
)
async def run_import(
    service: Annotated[CardImportService, Depends(get_import_service)],
    clear_existing: bool = True,
) -> ImportResultResponse:
    """
    Import the latest Scryfall bulk data.

    Runs to completion before responding. Partial failures come back with
    success=false and the error list; only a failed download is an error
    response.
    """
    try:
        result = await service.import_cards(clear_existing=clear_existing)
    except (ImportInProgressError, BulkDataFetchError) as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.to_detail().model_dump(mode="json"),
        ) from e

    return ImportResultResponse(
        success=result.success,
        total_processed=result.total_processed,
        total_saved=result.total_saved,
        total_skipped=result.total_skipped,
        total_errors=result.total_errors,
        duration=result.duration,
        errors=list(result.errors),
    )
