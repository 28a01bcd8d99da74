"""
Search term generation.

Builds every lookup key a player might reasonably type for a card:
the primary name, its Alchemy ("A-") counterpart, each half of a split or
double-faced card, and the halves joined by the separators people actually
use ("Fire Ice", "Fire / Ice", "Fire // Ice", "Fire /// Ice").

All terms are search-normalized, so the same function serves the import
side (what to store) and the query side (what to look up).
"""

from collections.abc import Iterable

from brawlforge.models.canonical_card import SearchTerm
from brawlforge.services.name_normalizer import (
    has_digital_prefix,
    normalize_for_search,
    strip_digital_prefix,
    toggle_digital_prefix,
)

SEPARATOR_VARIANTS: tuple[str, ...] = (" ", " / ", " // ", " /// ")


class _TermCollector:
    """Ordered, de-duplicated list of normalized terms."""

    def __init__(self) -> None:
        self.terms: list[SearchTerm] = []
        self._seen: set[str] = set()

    def add(self, text: str, is_primary: bool = False) -> None:
        normalized = normalize_for_search(text)
        if normalized and normalized not in self._seen:
            self._seen.add(normalized)
            self.terms.append(SearchTerm(term=normalized, is_primary=is_primary))

    def add_with_alternate_prefix(self, text: str) -> None:
        self.add(text)
        self.add(toggle_digital_prefix(text))


def generate_search_terms(name: str, face_names: Iterable[str] = ()) -> list[SearchTerm]:
    """
    Generate the search terms for a card name.

    Args:
        name: Card name (raw Scryfall name or a user query)
        face_names: Names of the card's faces, if it has any

    Returns:
        Terms in generation order. The first term is the primary name and
        the only one with is_primary=True; duplicates after normalization
        are dropped.
    """
    collector = _TermCollector()

    collector.add(name, is_primary=True)
    collector.add(toggle_digital_prefix(name))

    if "//" in name:
        parts = [part.strip() for part in name.split("//")]

        for part in parts:
            collector.add_with_alternate_prefix(part)

        prefixed = [part if has_digital_prefix(part) else f"A-{part}" for part in parts]
        unprefixed = [strip_digital_prefix(part) for part in parts]
        for separator in SEPARATOR_VARIANTS:
            collector.add(separator.join(parts))
            collector.add(separator.join(prefixed))
            collector.add(separator.join(unprefixed))

    faces = [face for face in face_names if face]
    if faces:
        for face in faces:
            if face != name:
                collector.add_with_alternate_prefix(face)

        for separator in SEPARATOR_VARIANTS:
            collector.add(separator.join(faces))

    return collector.terms


def generate_query_variations(query: str) -> list[str]:
    """Term strings a query should match exactly (same rules as import)."""
    return [search_term.term for search_term in generate_search_terms(query)]
