"""
Eligibility filter for raw Scryfall printings.

A printing is kept when it is legal in the target format on at least one
target platform and is printed in the canonical language. Defaults come
from settings: Brawl, Arena, English.
"""

import logging
from collections.abc import Collection, Iterable

from brawlforge.config import settings
from brawlforge.models.scryfall import RawCardRecord
from brawlforge.services.debug import DebugSink

logger = logging.getLogger(__name__)


def is_eligible(
    card: RawCardRecord,
    *,
    target_format: str | None = None,
    target_games: Collection[str] | None = None,
    language: str | None = None,
) -> bool:
    """Check one printing against the format, platform and language rules."""
    target_format = target_format or settings.target_format
    games = set(target_games if target_games is not None else settings.target_games)
    language = language or settings.canonical_language

    legalities = card.get("legalities") or {}
    if legalities.get(target_format) != "legal":
        return False
    if not games.intersection(card.get("games") or ()):
        return False
    return card.get("lang") == language


def filter_eligible_cards(
    cards: Iterable[RawCardRecord],
    *,
    target_format: str | None = None,
    target_games: Collection[str] | None = None,
    language: str | None = None,
    debug_sink: DebugSink | None = None,
) -> list[RawCardRecord]:
    """
    Keep only eligible printings, preserving input order.

    The input is not modified.
    """
    cards = list(cards)
    logger.info(
        "Filtering %d cards for %s legality",
        len(cards),
        target_format or settings.target_format,
    )

    eligible: list[RawCardRecord] = []
    for card in cards:
        if is_eligible(
            card,
            target_format=target_format,
            target_games=target_games,
            language=language,
        ):
            eligible.append(card)
        elif debug_sink is not None:
            debug_sink(
                "filtered_out",
                str(card.get("name", "")),
                {
                    "set": card.get("set"),
                    "lang": card.get("lang"),
                    "games": card.get("games"),
                    "legalities": card.get("legalities"),
                },
            )

    logger.info("Found %d eligible cards", len(eligible))
    return eligible
