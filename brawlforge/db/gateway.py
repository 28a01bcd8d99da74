"""
Persistence gateway for the import and search services.

The services depend on the CardGateway protocol only. SqlAlchemyCardGateway
implements it on top of the operations module, opening one session (and
therefore one transaction) per call so that a failed batch never takes
earlier batches down with it.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from brawlforge.db import operations
from brawlforge.models.canonical_card import CanonicalCardRecord, SearchTerm, SearchTermRow
from brawlforge.models.db import CardDB

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchInsertResult:
    """
    Outcome of inserting one batch of cards.

    Attributes:
        inserted_ids: oracle_id -> cards.id for the rows written
        error: Store error message when the batch was rolled back
    """

    inserted_ids: dict[str, int] = field(default_factory=dict)
    error: str | None = None


@dataclass(frozen=True, slots=True)
class TermMatch:
    """A stored search term and the card that owns it."""

    record_id: int
    term: str
    is_primary: bool
    record: CardDB


class CardGateway(Protocol):
    """Storage operations the import and search services rely on."""

    async def clear_all(self) -> None: ...

    async def insert_batch(self, records: Sequence[CanonicalCardRecord]) -> BatchInsertResult: ...

    async def insert_search_terms(self, rows: Sequence[SearchTermRow]) -> str | None: ...

    async def count(self, table: str, filters: Mapping[str, Any] | None = None) -> int: ...

    async def count_orphaned_search_terms(self) -> int: ...

    async def query_by_term_equality(self, terms: Sequence[str]) -> list[TermMatch]: ...

    async def query_by_term_prefix(self, prefix: str) -> list[TermMatch]: ...

    async def most_recent_record_timestamp(self) -> datetime | None: ...

    async def replace_sets(self, release_dates: Mapping[str, str]) -> list[str]: ...

    async def get_set_release_dates(self) -> dict[str, str]: ...


def _to_matches(rows: list[tuple[Any, CardDB]]) -> list[TermMatch]:
    return [
        TermMatch(
            record_id=card.id,
            term=term.search_term,
            is_primary=term.is_primary,
            record=card,
        )
        for term, card in rows
    ]


class SqlAlchemyCardGateway:
    """
    CardGateway backed by SQLAlchemy async sessions.

    Batch writes report failures as values; clear_all and the read
    methods let SQLAlchemyError propagate.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def clear_all(self) -> None:
        logger.info("Clearing existing card data")
        async with self._session_factory() as session:
            try:
                await operations.delete_all_cards(session)
                await session.commit()
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Failed to clear existing card data")
                raise
        logger.info("Existing card data cleared")

    async def insert_batch(self, records: Sequence[CanonicalCardRecord]) -> BatchInsertResult:
        async with self._session_factory() as session:
            try:
                inserted_ids = await operations.add_cards(session, records)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                return BatchInsertResult(error=str(e))
        return BatchInsertResult(inserted_ids=inserted_ids)

    async def insert_search_terms(self, rows: Sequence[SearchTermRow]) -> str | None:
        if not rows:
            return None
        async with self._session_factory() as session:
            try:
                await operations.add_search_terms(session, rows)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                return str(e)
        return None

    async def count(self, table: str, filters: Mapping[str, Any] | None = None) -> int:
        async with self._session_factory() as session:
            return await operations.count_rows(session, table, filters)

    async def count_orphaned_search_terms(self) -> int:
        async with self._session_factory() as session:
            return await operations.count_orphaned_search_terms(session)

    async def query_by_term_equality(self, terms: Sequence[str]) -> list[TermMatch]:
        async with self._session_factory() as session:
            return _to_matches(await operations.find_terms_equal(session, terms))

    async def query_by_term_prefix(self, prefix: str) -> list[TermMatch]:
        async with self._session_factory() as session:
            return _to_matches(await operations.find_terms_with_prefix(session, prefix))

    async def most_recent_record_timestamp(self) -> datetime | None:
        async with self._session_factory() as session:
            return await operations.latest_card_created_at(session)

    async def replace_sets(self, release_dates: Mapping[str, str]) -> list[str]:
        async with self._session_factory() as session:
            codes = await operations.replace_sets(session, release_dates)
            await session.commit()
        return codes

    async def get_set_release_dates(self) -> dict[str, str]:
        async with self._session_factory() as session:
            return await operations.get_set_release_dates(session)

    # --- Search term maintenance ---

    async def list_cards(self) -> list[CardDB]:
        async with self._session_factory() as session:
            return await operations.list_cards(session)

    async def replace_search_terms(self, card_id: int, terms: Sequence[SearchTerm]) -> str | None:
        """Replace one card's search terms; returns the store error, if any."""
        async with self._session_factory() as session:
            try:
                await operations.replace_card_search_terms(session, card_id, terms)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                return str(e)
        return None
