"""
Canonical printing selection.

Scryfall's default_cards file has one record per printing. We store one row
per card identity (oracle_id), so every group of printings is reduced to a
single canonical printing:

1. Lowest rarity wins (common < uncommon < rare < mythic). The most
   reprinted version is usually the most recognizable one.
2. Among those, the printing from the most recently released set wins,
   for current templating and art.
3. Remaining ties keep the first printing encountered.

The selected printing carries every set code the identity appeared in.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from brawlforge.config import RARITY_RANK, UNKNOWN_RELEASE_DATE
from brawlforge.models.canonical_card import SelectedPrinting
from brawlforge.models.scryfall import RawCardRecord
from brawlforge.services.debug import DebugSink

logger = logging.getLogger(__name__)

# Unrecognized rarities (special, bonus) lose to every known one
_UNKNOWN_RARITY_RANK = max(RARITY_RANK.values()) + 1


def build_release_dates(cards: Iterable[RawCardRecord]) -> dict[str, str]:
    """
    Build a set code -> release date (YYYY-MM-DD) lookup.

    The earliest printing date seen for a set is used as its release date.
    Printings without a set code or date are ignored.
    """
    release_dates: dict[str, str] = {}
    for card in cards:
        set_code = card.get("set")
        released_at = card.get("released_at")
        if not set_code or not released_at:
            continue
        known = release_dates.get(set_code)
        if known is None or released_at < known:
            release_dates[set_code] = released_at
    return release_dates


def group_by_identity(cards: Iterable[RawCardRecord]) -> dict[str, list[RawCardRecord]]:
    """
    Group printings by oracle_id, keeping first-seen order.

    Printings without an oracle_id are never merged with each other; each
    gets its own group keyed by printing id so validation can reject it.
    """
    groups: dict[str, list[RawCardRecord]] = {}
    for index, card in enumerate(cards):
        key = card.get("oracle_id") or f"printing:{card.get('id') or index}"
        groups.setdefault(key, []).append(card)
    return groups


def _rarity_rank(card: RawCardRecord) -> int:
    return RARITY_RANK.get(card.get("rarity", ""), _UNKNOWN_RARITY_RANK)


def _release_date(card: RawCardRecord, release_dates: Mapping[str, str]) -> str:
    return release_dates.get(card.get("set", ""), UNKNOWN_RELEASE_DATE)


def select_canonical_version(
    printings: Sequence[RawCardRecord],
    release_dates: Mapping[str, str],
) -> SelectedPrinting:
    """
    Pick the canonical printing for one card identity.

    Args:
        printings: Every eligible printing sharing one oracle_id
        release_dates: Set code -> ISO release date

    Returns:
        The chosen printing with all legal set codes (sorted) attached

    Raises:
        ValueError: If printings is empty
    """
    if not printings:
        raise ValueError("Cannot select a canonical version from zero printings")

    if len(printings) == 1:
        only = printings[0]
        own_set = only.get("set")
        return SelectedPrinting(card=only, legal_set_codes=(own_set,) if own_set else ())

    legal_set_codes = tuple(sorted({card["set"] for card in printings if card.get("set")}))

    lowest_rank = min(_rarity_rank(card) for card in printings)
    candidates = [card for card in printings if _rarity_rank(card) == lowest_rank]

    best = candidates[0]
    best_date = _release_date(best, release_dates)
    for card in candidates[1:]:
        released = _release_date(card, release_dates)
        if released > best_date:
            best, best_date = card, released

    return SelectedPrinting(card=best, legal_set_codes=legal_set_codes)


def deduplicate_cards(
    cards: Iterable[RawCardRecord],
    release_dates: Mapping[str, str] | None = None,
    debug_sink: DebugSink | None = None,
) -> list[SelectedPrinting]:
    """
    Reduce printings to one canonical printing per identity.

    Args:
        cards: Eligible printings
        release_dates: Set release dates; derived from cards when omitted
        debug_sink: Optional tracer for watched cards

    Returns:
        One SelectedPrinting per identity, in first-seen order
    """
    cards = list(cards)
    if release_dates is None:
        release_dates = build_release_dates(cards)

    logger.info("Deduplicating %d cards by oracle_id", len(cards))

    selected: list[SelectedPrinting] = []
    for printings in group_by_identity(cards).values():
        choice = select_canonical_version(printings, release_dates)
        selected.append(choice)
        if debug_sink is not None:
            debug_sink(
                "version_selected",
                str(choice.card.get("name", "")),
                {
                    "printings": len(printings),
                    "chosen_set": choice.card.get("set"),
                    "chosen_rarity": choice.card.get("rarity"),
                    "legal_set_codes": list(choice.legal_set_codes),
                },
            )

    logger.info("Deduplicated to %d unique cards", len(selected))
    return selected


# --- Set release date helpers ---


def most_recent_set(
    set_codes: Iterable[str], release_dates: Mapping[str, str]
) -> tuple[str, str] | None:
    """
    Find the most recently released set among set_codes.

    Returns:
        (set_code, release_date), or None for no set codes.
        Sets with unknown dates count as released on UNKNOWN_RELEASE_DATE.
    """
    best: tuple[str, str] | None = None
    for set_code in set_codes:
        released = release_dates.get(set_code, UNKNOWN_RELEASE_DATE)
        if best is None or released > best[1]:
            best = (set_code, released)
    return best


def sort_sets_by_release_date(
    set_codes: Iterable[str],
    release_dates: Mapping[str, str],
    ascending: bool = False,
) -> list[str]:
    """Sort set codes by release date, newest first unless ascending."""
    return sorted(
        set_codes,
        key=lambda code: release_dates.get(code, UNKNOWN_RELEASE_DATE),
        reverse=not ascending,
    )


def sets_in_date_range(
    start_date: str, end_date: str, release_dates: Mapping[str, str]
) -> list[tuple[str, str]]:
    """Sets released between start_date and end_date inclusive, oldest first."""
    matches = [
        (set_code, released)
        for set_code, released in release_dates.items()
        if start_date <= released <= end_date
    ]
    return sorted(matches, key=lambda item: item[1])


# --- Stored set release dates ---


class SetDateSource(Protocol):
    """Anything that can load the set release dates saved by the last import."""

    async def get_set_release_dates(self) -> dict[str, str]: ...


async def load_most_recent_set(
    source: SetDateSource, set_codes: Iterable[str]
) -> tuple[str, str] | None:
    """most_recent_set against the stored release dates."""
    return most_recent_set(set_codes, await source.get_set_release_dates())


async def load_sets_by_release_date(
    source: SetDateSource,
    set_codes: Iterable[str] | None = None,
    ascending: bool = False,
) -> list[str]:
    """Sort set_codes (default: every stored set) by stored release date."""
    release_dates = await source.get_set_release_dates()
    codes = release_dates.keys() if set_codes is None else set_codes
    return sort_sets_by_release_date(codes, release_dates, ascending=ascending)


async def load_sets_in_date_range(
    source: SetDateSource, start_date: str, end_date: str
) -> list[tuple[str, str]]:
    """sets_in_date_range against the stored release dates."""
    return sets_in_date_range(start_date, end_date, await source.get_set_release_dates())
