"""Tests for card search."""

import pytest
from sqlalchemy.exc import OperationalError

from brawlforge.db.batch_writer import write_in_batches
from brawlforge.models.db import CardDB
from brawlforge.services.card_search import CardSearchService, parse_query, rank_records


class BrokenGateway:
    """Gateway whose queries always fail."""

    async def query_by_term_equality(self, terms):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    async def query_by_term_prefix(self, prefix):
        raise OperationalError("SELECT", {}, Exception("database is locked"))


@pytest.fixture
async def search(gateway, make_record) -> CardSearchService:
    """Search service over a small stored card pool."""
    names = [
        "Lightning Bolt",
        "Lightning Helix",
        "Shock",
        "Shock Troops",
        "Fire // Ice",
        "Lórien Revealed",
        "A-Sheoldred",
    ]
    summary = await write_in_batches(gateway, [make_record(name) for name in names])
    assert summary.errors == []
    return CardSearchService(gateway)


class TestParseQuery:
    def test_quoted(self) -> None:
        assert parse_query(' "Lightning Bolt" ') == ("Lightning Bolt", True)

    def test_unquoted(self) -> None:
        assert parse_query("Lightning Bolt") == ("Lightning Bolt", False)

    def test_single_quote_character(self) -> None:
        """A lone double quote is not a quoted query."""
        assert parse_query('"') == ('"', False)


class TestRankRecords:
    def test_exact_then_face_then_name(self) -> None:
        """A card whose face matches outranks other names but not an exact match."""
        records = [
            CardDB(name="Icebreaker", search_key="icebreaker"),
            CardDB(name="Fire // Ice", search_key="fire // ice"),
            CardDB(name="Ice // Age", search_key="ice // age"),
            CardDB(name="Ice", search_key="ice"),
        ]

        ranked = rank_records(records, "ice")

        assert [record.name for record in ranked] == [
            "Ice",
            "Fire // Ice",
            "Ice // Age",
            "Icebreaker",
        ]

    async def test_search_orders_face_match_after_exact(self, gateway, make_record) -> None:
        await write_in_batches(gateway, [make_record("Fire // Ice"), make_record("Ice")])

        result = await CardSearchService(gateway).search_cards("ice")

        assert [card.name for card in result.records] == ["Ice", "Fire // Ice"]


class TestSearchCards:
    async def test_empty_query(self, search) -> None:
        """Blank queries return nothing without touching the store."""
        result = await search.search_cards("   ")

        assert result.records == []
        assert result.total_count == 0
        assert result.error is None

    async def test_equality_before_prefix(self, search) -> None:
        """An equal term wins; longer names are not pulled in."""
        result = await search.search_cards("shock")

        assert [card.name for card in result.records] == ["Shock"]
        assert result.normalized_query == "shock"

    async def test_prefix_fallback(self, search) -> None:
        """With no equal term, names starting with the query match."""
        result = await search.search_cards("Lightning")

        assert [card.name for card in result.records] == ["Lightning Bolt", "Lightning Helix"]
        assert result.total_count == 2

    async def test_quoted_query_is_exact(self, search) -> None:
        """Quoted queries never fall back to a prefix search."""
        result = await search.search_cards('"Lightning"')

        assert result.records == []

    async def test_exact_match_flag(self, search) -> None:
        result = await search.search_cards("Shock Troops", exact_match=True)

        assert [card.name for card in result.records] == ["Shock Troops"]

    async def test_card_matched_once(self, search) -> None:
        """A card hit through several of its terms appears once."""
        result = await search.search_cards("fir")

        assert [card.name for card in result.records] == ["Fire // Ice"]
        assert result.total_count == 1

    async def test_split_card_half(self, search) -> None:
        result = await search.search_cards('"Ice"')

        assert [card.name for card in result.records] == ["Fire // Ice"]

    async def test_accents_and_alchemy_prefix_ignored(self, search) -> None:
        """Queries are normalized the same way stored names are."""
        lorien = await search.search_cards("lorien revealed")
        sheoldred = await search.search_cards("Sheoldred")

        assert [card.name for card in lorien.records] == ["Lorien Revealed"]
        assert [card.name for card in sheoldred.records] == ["Sheoldred"]

    async def test_limit_keeps_total(self, search) -> None:
        """The limit trims records; total_count is the full match count."""
        result = await search.search_cards("Lightning", limit=1)

        assert [card.name for card in result.records] == ["Lightning Bolt"]
        assert result.total_count == 2

    async def test_store_error_reported(self) -> None:
        """Store failures come back in the result instead of raising."""
        result = await CardSearchService(BrokenGateway()).search_cards("Shock")

        assert result.records == []
        assert "database is locked" in result.error


class TestFindExactCard:
    async def test_found(self, search) -> None:
        card = await search.find_exact_card("Lightning Bolt")

        assert card is not None
        assert card.name == "Lightning Bolt"

    async def test_not_found(self, search) -> None:
        assert await search.find_exact_card("Lightning") is None

    async def test_store_error_raised(self) -> None:
        with pytest.raises(LookupError):
            await CardSearchService(BrokenGateway()).find_exact_card("Shock")


class TestBatchSearchCards:
    async def test_splits_found_and_missing(self, search) -> None:
        result = await search.batch_search_cards(["Shock", "Black Lotus", "Fire // Ice"])

        assert set(result.found) == {"Shock", "Fire // Ice"}
        assert result.not_found == ["Black Lotus"]
        assert result.errors == []

    async def test_errors_per_name(self) -> None:
        result = await CardSearchService(BrokenGateway()).batch_search_cards(["Opt"])

        assert len(result.errors) == 1
        assert result.errors[0].startswith("Opt: ")
