"""
Rebuild search terms for every stored card.

Run after changing name normalization or search term generation, so stored
terms match what queries now normalize to. Cards themselves are untouched.
Face names are not stored, so terms are regenerated from the card name.
"""

import asyncio
import logging
from dataclasses import dataclass

from brawlforge.db.database import async_session_factory
from brawlforge.db.gateway import SqlAlchemyCardGateway
from brawlforge.services.search_terms import generate_search_terms

logger = logging.getLogger(__name__)


@dataclass
class RegenerationSummary:
    processed: int = 0
    errors: int = 0


async def regenerate_search_terms(gateway: SqlAlchemyCardGateway) -> RegenerationSummary:
    """
    Replace each card's search terms with freshly generated ones.

    One transaction per card; a failing card is logged and counted.
    """
    cards = await gateway.list_cards()
    logger.info("Found %d cards to process", len(cards))

    summary = RegenerationSummary()
    for card in cards:
        terms = generate_search_terms(card.original_name)
        error = await gateway.replace_search_terms(card.id, terms)
        if error is not None:
            logger.error("Error inserting search terms for %s: %s", card.original_name, error)
            summary.errors += 1
        else:
            logger.debug("Inserted %d search terms for %s", len(terms), card.original_name)
            summary.processed += 1

    logger.info(
        "Regeneration complete: %d cards processed, %d errors",
        summary.processed,
        summary.errors,
    )
    return summary


async def run_regeneration() -> RegenerationSummary:
    return await regenerate_search_terms(SqlAlchemyCardGateway(async_session_factory))


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_regeneration())


if __name__ == "__main__":
    main()
