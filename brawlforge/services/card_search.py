"""
Card search over stored search terms.

Queries are normalized exactly like imported names, so "Lorien",
"A-Lórien" and "lorien" all land on the same stored term.

Matching rules:
- A quoted query ("Lightning Bolt") or exact_match=True matches any stored
  term equal to one of the query's variations. No prefix fallback.
- Otherwise the normalized query is matched by equality first; only when
  that finds nothing are terms starting with the query tried.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from brawlforge.db.gateway import CardGateway, TermMatch
from brawlforge.models.db import CardDB
from brawlforge.services.name_normalizer import FACE_SEPARATOR, normalize_for_search
from brawlforge.services.search_terms import generate_query_variations

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50


@dataclass
class SearchResult:
    """
    Cards matching a query.

    Attributes:
        records: Matching cards, exact name matches first, then face
            matches, then by name
        total_count: Matches before the limit was applied
        query: The query as given
        normalized_query: Search key the query was matched with
        error: Store error message, if the lookup failed
    """

    records: list[CardDB] = field(default_factory=list)
    total_count: int = 0
    query: str = ""
    normalized_query: str = ""
    error: str | None = None


@dataclass
class BatchSearchResult:
    found: dict[str, CardDB] = field(default_factory=dict)
    not_found: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_query(query: str) -> tuple[str, bool]:
    """
    Split off surrounding double quotes.

    Returns:
        (query text, is_quoted)
    """
    stripped = query.strip()
    if len(stripped) >= 2 and stripped.startswith('"') and stripped.endswith('"'):
        return stripped[1:-1].strip(), True
    return stripped, False


def unique_records(matches: Iterable[TermMatch]) -> list[CardDB]:
    """One record per card id, in first-match order."""
    seen: set[int] = set()
    records: list[CardDB] = []
    for match in matches:
        if match.record_id not in seen:
            seen.add(match.record_id)
            records.append(match.record)
    return records


def _match_rank(search_key: str, normalized_query: str) -> int:
    if search_key == normalized_query:
        return 0
    # One face of a split or double-faced card
    if search_key.startswith(f"{normalized_query}{FACE_SEPARATOR}") or search_key.endswith(
        f"{FACE_SEPARATOR}{normalized_query}"
    ):
        return 1
    return 2


def rank_records(records: list[CardDB], normalized_query: str) -> list[CardDB]:
    """
    Order matches for display.

    Exact search-key matches first, then cards with a face matching the
    query, then everything else; display name breaks ties.
    """
    return sorted(
        records,
        key=lambda record: (
            _match_rank(record.search_key or "", normalized_query),
            record.name or "",
        ),
    )


class CardSearchService:
    """Stateless search over a CardGateway; safe to call during an import."""

    def __init__(self, gateway: CardGateway) -> None:
        self._gateway = gateway

    async def search_cards(
        self,
        query: str,
        *,
        limit: int = DEFAULT_SEARCH_LIMIT,
        exact_match: bool = False,
    ) -> SearchResult:
        """
        Search cards by name.

        Args:
            query: User input; wrap in double quotes for an exact search
            limit: Maximum records returned
            exact_match: Force exact matching without quotes

        Returns:
            SearchResult; store failures are reported in .error, not raised
        """
        if not query or not query.strip():
            return SearchResult(query=query)

        text, quoted = parse_query(query)
        normalized = normalize_for_search(text)
        if not normalized:
            return SearchResult(query=query)

        exact = quoted or exact_match
        logger.debug("Searching %r as %r (exact=%s)", query, normalized, exact)

        try:
            if exact:
                matches = await self._gateway.query_by_term_equality(
                    generate_query_variations(normalized)
                )
            else:
                matches = await self._gateway.query_by_term_equality([normalized])
                if not matches:
                    matches = await self._gateway.query_by_term_prefix(normalized)
        except SQLAlchemyError as e:
            logger.warning("Card search for %r failed: %s", query, e)
            return SearchResult(query=query, normalized_query=normalized, error=str(e))

        records = rank_records(unique_records(matches), normalized)
        return SearchResult(
            records=records[:limit],
            total_count=len(records),
            query=query,
            normalized_query=normalized,
        )

    async def find_exact_card(self, name: str) -> CardDB | None:
        """Best exact match for a card name, or None."""
        result = await self.search_cards(f'"{name}"', limit=1, exact_match=True)
        if result.error is not None:
            raise LookupError(result.error)
        return result.records[0] if result.records else None

    async def batch_search_cards(self, names: Iterable[str]) -> BatchSearchResult:
        """
        Look up many card names exactly, e.g. for a deck list import.

        Store failures are collected per name as "name: message".
        """
        outcome = BatchSearchResult()
        for name in names:
            try:
                card = await self.find_exact_card(name)
            except LookupError as e:
                outcome.errors.append(f"{name}: {e}")
                continue
            if card is None:
                outcome.not_found.append(name)
            else:
                outcome.found[name] = card
        return outcome
