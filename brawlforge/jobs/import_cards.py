"""
Import Scryfall card data.

Downloads the default_cards bulk file, keeps the Brawl-legal Arena cards,
picks one canonical printing per card and replaces the stored card pool.

    python -m brawlforge.jobs.import_cards [--keep-existing] [--check-only]
"""

import argparse
import asyncio
import logging

from brawlforge.config import settings
from brawlforge.db.database import async_session_factory, init_db
from brawlforge.db.gateway import SqlAlchemyCardGateway
from brawlforge.models.failure import BulkDataFetchError
from brawlforge.models.import_progress import ImportProgress, ImportResult, ImportStatus
from brawlforge.services.card_import import CardImportService
from brawlforge.services.debug import make_watch_sink
from brawlforge.services.scryfall_client import ScryfallBulkClient

logger = logging.getLogger(__name__)


def log_progress(progress: ImportProgress) -> None:
    """Log stage changes and coarse progress; download chunks are debug-only."""
    if progress.status == ImportStatus.DOWNLOADING:
        logger.debug("%s", progress.message)
    else:
        logger.info("%s", progress.message)


def build_service() -> CardImportService:
    return CardImportService(
        ScryfallBulkClient(),
        SqlAlchemyCardGateway(async_session_factory),
        debug_sink=make_watch_sink(settings.watch_cards),
    )


async def run_import(keep_existing: bool = False, check_only: bool = False) -> ImportResult | None:
    """
    Run a card import.

    Args:
        keep_existing: Add to the stored cards instead of replacing them
        check_only: Only report whether the bulk data is newer than our cards

    Returns:
        The ImportResult, or None for check_only
    """
    await init_db()
    service = build_service()

    if check_only:
        check = await service.check_for_updates()
        logger.info(
            "Cards stored: %d, last import: %s, last Scryfall update: %s, needs update: %s",
            check.card_count,
            check.last_import,
            check.last_source_update,
            check.needs_update,
        )
        return None

    logger.info("Importing Scryfall card data...")
    try:
        result = await service.import_cards(
            on_progress=log_progress, clear_existing=not keep_existing
        )
    except BulkDataFetchError as e:
        logger.error("Failed to download card data: %s", e)
        raise

    logger.info(
        "Processed %d, saved %d, skipped %d in %.1fs",
        result.total_processed,
        result.total_saved,
        result.total_skipped,
        result.duration,
    )
    for error in result.errors:
        logger.warning("Import error: %s", error)
    return result


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import Scryfall card data")
    parser.add_argument(
        "--keep-existing",
        action="store_true",
        help="Do not clear stored cards before saving",
    )
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only check whether newer bulk data is available",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)
    result = asyncio.run(run_import(keep_existing=args.keep_existing, check_only=args.check_only))
    if result is not None and not result.success:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
