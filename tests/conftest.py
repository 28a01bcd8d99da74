import itertools
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from brawlforge.db.database import create_engine, create_session_factory
from brawlforge.db.gateway import BatchInsertResult, SqlAlchemyCardGateway
from brawlforge.models.canonical_card import CanonicalCardRecord, SelectedPrinting
from brawlforge.models.db import Base
from brawlforge.models.scryfall import BulkDescriptor, RawCardRecord
from brawlforge.services.record_transformer import transform_card

CardFactory = Callable[..., RawCardRecord]


@pytest.fixture
def make_card() -> CardFactory:
    """Factory for Scryfall printings: Brawl-legal, on Arena, in English."""
    counter = itertools.count(1)

    def _make(name: str = "Llanowar Elves", **overrides: Any) -> RawCardRecord:
        number = next(counter)
        card: dict[str, Any] = {
            "id": f"printing-{number}",
            "oracle_id": f"oracle-{name.lower().replace(' ', '-')}",
            "name": name,
            "lang": "en",
            "layout": "normal",
            "mana_cost": "{G}",
            "cmc": 1.0,
            "type_line": "Creature — Elf Druid",
            "oracle_text": "{T}: Add {G}.",
            "colors": ["G"],
            "color_identity": ["G"],
            "rarity": "common",
            "set": "dom",
            "set_name": "Dominaria",
            "released_at": "2018-04-27",
            "legalities": {"brawl": "legal", "standard": "not_legal"},
            "games": ["arena", "paper"],
            "image_uris": {
                "small": f"https://cards.scryfall.io/small/{number}.jpg",
                "normal": f"https://cards.scryfall.io/normal/{number}.jpg",
            },
            "scryfall_uri": f"https://scryfall.com/card/dom/{number}",
        }
        card.update(overrides)
        return card  # type: ignore[return-value]

    return _make


@pytest.fixture
def make_record(make_card: CardFactory) -> Callable[..., CanonicalCardRecord]:
    """Factory for transformed records, built through transform_card."""

    def _make(name: str = "Llanowar Elves", **overrides: Any) -> CanonicalCardRecord:
        card = make_card(name, **overrides)
        return transform_card(SelectedPrinting(card=card, legal_set_codes=(card["set"],)))

    return _make


@pytest.fixture
def bulk_descriptor() -> BulkDescriptor:
    return BulkDescriptor(
        url="https://data.scryfall.io/default-cards/default-cards.json",
        size_bytes=1024,
        updated_at=datetime(2024, 5, 1, 9, 0, tzinfo=UTC),
        name="Default Cards",
    )


class FakeBulkSource:
    """In-memory bulk source with optional failure and pause points."""

    def __init__(
        self,
        descriptor: BulkDescriptor,
        records: list[RawCardRecord],
        error: Exception | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.records = records
        self.error = error
        self.descriptor_calls = 0
        self.stream_calls = 0
        self.gate: Any = None

    async def get_bulk_descriptor(self) -> BulkDescriptor:
        self.descriptor_calls += 1
        if self.error is not None:
            raise self.error
        return self.descriptor

    async def stream_records(self, descriptor, on_progress=None):
        self.stream_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if on_progress is not None:
            on_progress(descriptor.size_bytes, descriptor.size_bytes)
        return list(self.records)


@pytest.fixture
def fake_source_factory(bulk_descriptor: BulkDescriptor) -> Callable[..., FakeBulkSource]:
    def _make(records: list[RawCardRecord], error: Exception | None = None) -> FakeBulkSource:
        return FakeBulkSource(bulk_descriptor, records, error)

    return _make


@pytest.fixture
async def async_engine(tmp_path: Path) -> AsyncEngine:
    """SQLite file database; every gateway call opens its own connection."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'cards.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine):
    return create_session_factory(async_engine)


@pytest.fixture
def gateway(session_factory) -> SqlAlchemyCardGateway:
    return SqlAlchemyCardGateway(session_factory)


class FakeCardGateway:
    """
    In-memory CardGateway.

    fail_batches holds 1-based insert_batch call numbers that return an
    error instead of writing.
    """

    def __init__(self) -> None:
        self.cards: dict[int, Any] = {}
        self.terms: list[Any] = []
        self.sets: dict[str, str] = {}
        self.fail_batches: set[int] = set()
        self.fail_terms: set[int] = set()
        self.orphaned = 0
        self.clear_calls = 0
        self.batch_calls = 0
        self.terms_calls = 0
        self._next_id = itertools.count(1)

    async def clear_all(self) -> None:
        self.clear_calls += 1
        self.cards.clear()
        self.terms.clear()

    async def insert_batch(self, records):
        self.batch_calls += 1
        if self.batch_calls in self.fail_batches:
            return BatchInsertResult(error="database is locked")
        ids = {}
        for record in records:
            card_id = next(self._next_id)
            self.cards[card_id] = record
            ids[record.identity_id] = card_id
        return BatchInsertResult(inserted_ids=ids)

    async def insert_search_terms(self, rows):
        self.terms_calls += 1
        if self.terms_calls in self.fail_terms:
            return "duplicate search term"
        self.terms.extend(rows)
        return None

    async def count(self, table, filters=None):
        rows = {"cards": list(self.cards.values()), "card_search_terms": self.terms}[table]
        for column, value in (filters or {}).items():
            rows = [row for row in rows if getattr(row, column) == value]
        return len(rows)

    async def count_orphaned_search_terms(self) -> int:
        return self.orphaned

    async def query_by_term_equality(self, terms):
        return []

    async def query_by_term_prefix(self, prefix):
        return []

    async def most_recent_record_timestamp(self):
        return datetime(2024, 4, 1, tzinfo=UTC) if self.cards else None

    async def replace_sets(self, release_dates):
        self.sets = dict(release_dates)
        return sorted(self.sets)

    async def get_set_release_dates(self):
        return dict(self.sets)


@pytest.fixture
def fake_gateway() -> FakeCardGateway:
    return FakeCardGateway()
