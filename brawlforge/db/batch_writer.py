"""
Batched card writes.

Cards are written in fixed-size batches, each batch followed by its search
terms. A failed batch is recorded and skipped; later batches are still
attempted.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from brawlforge.db.gateway import CardGateway
from brawlforge.db.operations import search_term_rows
from brawlforge.models.canonical_card import CanonicalCardRecord

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


@dataclass
class BatchWriteSummary:
    """Cards written and batch errors, in batch order."""

    inserted: int = 0
    search_terms: int = 0
    inserted_ids: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


async def write_in_batches(
    gateway: CardGateway,
    records: Sequence[CanonicalCardRecord],
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_progress: Callable[[int, int], None] | None = None,
) -> BatchWriteSummary:
    """
    Insert records and their search terms batch by batch.

    Args:
        gateway: Storage to write to
        records: Validated records
        batch_size: Records per batch (1-based batch numbers in errors)
        on_progress: Called with (saved, total) after each saved batch

    Returns:
        BatchWriteSummary; errors read "Batch N: ..." for card failures and
        "Search terms batch N: ..." for search term failures
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    total = len(records)
    summary = BatchWriteSummary()
    logger.info("Inserting %d cards in batches of %d", total, batch_size)

    for start in range(0, total, batch_size):
        batch_number = start // batch_size + 1
        batch = records[start : start + batch_size]

        try:
            result = await gateway.insert_batch(batch)
            if result.error is not None:
                summary.errors.append(f"Batch {batch_number}: {result.error}")
                logger.warning("Batch %d failed: %s", batch_number, result.error)
                continue

            rows = search_term_rows(batch, result.inserted_ids)
            terms_error = await gateway.insert_search_terms(rows)
            if terms_error is not None:
                summary.errors.append(f"Search terms batch {batch_number}: {terms_error}")
                logger.warning("Search terms batch %d failed: %s", batch_number, terms_error)
            else:
                summary.search_terms += len(rows)
        except Exception as e:
            summary.errors.append(f"Batch {batch_number}: {e}")
            logger.warning("Batch %d failed: %s", batch_number, e)
            continue

        summary.inserted += len(result.inserted_ids)
        summary.inserted_ids.update(result.inserted_ids)
        if on_progress is not None:
            on_progress(summary.inserted, total)

    logger.info("Inserted %d/%d cards", summary.inserted, total)
    if summary.errors:
        logger.warning("%d batch errors occurred", len(summary.errors))
    return summary
