"""
Database operations on cards, search terms and sets.

Session-level functions: callers own the session and the transaction.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brawlforge.config import UNKNOWN_RELEASE_DATE
from brawlforge.models.canonical_card import CanonicalCardRecord, SearchTerm, SearchTermRow
from brawlforge.models.db import Base, CardDB, CardSearchTermDB, SetDB

# Tables that count() may be asked about, by table name
COUNTABLE_TABLES: dict[str, type[Base]] = {
    CardDB.__tablename__: CardDB,
    CardSearchTermDB.__tablename__: CardSearchTermDB,
    SetDB.__tablename__: SetDB,
}


# --- Conversion ---


def record_to_model(record: CanonicalCardRecord) -> CardDB:
    """Convert a canonical record to a cards row (without search terms)."""
    return CardDB(
        oracle_id=record.identity_id,
        scryfall_id=record.printing_id,
        original_name=record.original_name,
        name=record.display_name,
        search_key=record.search_key,
        mana_cost=record.mana_cost,
        cmc=record.mana_value,
        type_line=record.type_line,
        oracle_text=record.rules_text,
        colors=list(record.colors),
        color_identity=list(record.color_identity),
        rarity=record.rarity,
        set_code=record.set_code,
        legal_set_codes=list(record.legal_set_codes),
        can_be_commander=record.can_be_commander,
        can_be_companion=record.can_be_companion,
        companion_restriction=record.companion_restriction,
        image_uris=record.image_uris,
        back_image_uris=record.back_image_uris,
        display_hints=record.display_hints.to_dict(),
        scryfall_uri=record.scryfall_uri,
    )


def search_term_rows(
    records: Iterable[CanonicalCardRecord], card_ids: Mapping[str, int]
) -> list[SearchTermRow]:
    """
    Bind each record's search terms to its persisted card id.

    Records missing from card_ids (not inserted) contribute no rows.
    """
    rows: list[SearchTermRow] = []
    for record in records:
        card_id = card_ids.get(record.identity_id)
        if card_id is None:
            continue
        rows.extend(
            SearchTermRow(card_id=card_id, term=term.term, is_primary=term.is_primary)
            for term in record.search_terms
        )
    return rows


# --- Writes ---


async def add_cards(
    session: AsyncSession, records: Sequence[CanonicalCardRecord]
) -> dict[str, int]:
    """
    Add cards and flush so they get ids.

    Returns:
        oracle_id -> cards.id for every added record
    """
    models = [record_to_model(record) for record in records]
    session.add_all(models)
    await session.flush()
    return {model.oracle_id: model.id for model in models}


async def add_search_terms(session: AsyncSession, rows: Sequence[SearchTermRow]) -> None:
    session.add_all(
        CardSearchTermDB(card_id=row.card_id, search_term=row.term, is_primary=row.is_primary)
        for row in rows
    )
    await session.flush()


async def delete_all_cards(session: AsyncSession) -> None:
    """Delete every search term, then every card."""
    await session.execute(delete(CardSearchTermDB))
    await session.execute(delete(CardDB))


async def replace_card_search_terms(
    session: AsyncSession, card_id: int, terms: Sequence[SearchTerm]
) -> None:
    """Swap one card's search terms for a freshly generated set."""
    await session.execute(delete(CardSearchTermDB).where(CardSearchTermDB.card_id == card_id))
    await add_search_terms(
        session,
        [SearchTermRow(card_id=card_id, term=t.term, is_primary=t.is_primary) for t in terms],
    )


async def replace_sets(session: AsyncSession, release_dates: Mapping[str, str]) -> list[str]:
    """
    Replace the sets table with release_dates.

    Returns:
        Set codes written, sorted
    """
    await session.execute(delete(SetDB))
    codes = sorted(release_dates)
    session.add_all(SetDB(set_code=code, released_at=release_dates[code]) for code in codes)
    await session.flush()
    return codes


# --- Reads ---


async def count_rows(
    session: AsyncSession, table: str, filters: Mapping[str, Any] | None = None
) -> int:
    """
    Count rows in a table, optionally matching column == value filters.

    Raises:
        ValueError: Unknown table or column
    """
    model = COUNTABLE_TABLES.get(table)
    if model is None:
        raise ValueError(f"Unknown table: {table}")

    stmt = select(func.count()).select_from(model)
    for column_name, value in (filters or {}).items():
        column = model.__table__.columns.get(column_name)
        if column is None:
            raise ValueError(f"Unknown column for {table}: {column_name}")
        stmt = stmt.where(column == value)

    result = await session.execute(stmt)
    return result.scalar_one()


async def count_orphaned_search_terms(session: AsyncSession) -> int:
    """Count search terms whose card no longer exists."""
    stmt = (
        select(func.count())
        .select_from(CardSearchTermDB)
        .outerjoin(CardDB, CardSearchTermDB.card_id == CardDB.id)
        .where(CardDB.id.is_(None))
    )
    result = await session.execute(stmt)
    return result.scalar_one()


async def find_terms_equal(
    session: AsyncSession, terms: Sequence[str]
) -> list[tuple[CardSearchTermDB, CardDB]]:
    if not terms:
        return []
    result = await session.execute(
        select(CardSearchTermDB, CardDB)
        .join(CardDB, CardSearchTermDB.card_id == CardDB.id)
        .where(CardSearchTermDB.search_term.in_(list(terms)))
        .order_by(CardSearchTermDB.id)
    )
    return [(term, card) for term, card in result.all()]


async def find_terms_with_prefix(
    session: AsyncSession, prefix: str
) -> list[tuple[CardSearchTermDB, CardDB]]:
    result = await session.execute(
        select(CardSearchTermDB, CardDB)
        .join(CardDB, CardSearchTermDB.card_id == CardDB.id)
        .where(CardSearchTermDB.search_term.startswith(prefix, autoescape=True))
        .order_by(CardSearchTermDB.id)
    )
    return [(term, card) for term, card in result.all()]


async def get_set_release_dates(session: AsyncSession) -> dict[str, str]:
    """Stored set code -> release date; sets without a date get UNKNOWN_RELEASE_DATE."""
    result = await session.execute(select(SetDB.set_code, SetDB.released_at))
    return {code: released or UNKNOWN_RELEASE_DATE for code, released in result.all()}


async def latest_card_created_at(session: AsyncSession) -> datetime | None:
    result = await session.execute(select(func.max(CardDB.created_at)))
    return result.scalar_one_or_none()


async def list_cards(session: AsyncSession) -> list[CardDB]:
    """All cards ordered by display name."""
    result = await session.execute(select(CardDB).order_by(CardDB.name, CardDB.id))
    return list(result.scalars().all())
