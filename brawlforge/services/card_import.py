"""
Card import orchestration.

Runs one full import: fetch descriptor -> download -> process -> save ->
verify, reporting ImportProgress at every stage.

Only one import runs at a time per service instance. A second call while
one is running raises ImportInProgressError immediately and leaves the
running import alone. A run cannot be cancelled once started.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from brawlforge.config import settings
from brawlforge.db.batch_writer import BatchWriteSummary, write_in_batches
from brawlforge.db.gateway import CardGateway
from brawlforge.models.canonical_card import CanonicalCardRecord
from brawlforge.models.failure import BulkDataFetchError, ImportInProgressError
from brawlforge.models.import_progress import (
    ImportProgress,
    ImportResult,
    ImportStatus,
    ProgressCallback,
)
from brawlforge.models.scryfall import BulkDescriptor, RawCardRecord
from brawlforge.services.card_processor import process_card_data
from brawlforge.services.debug import DebugSink
from brawlforge.services.record_transformer import card_statistics

logger = logging.getLogger(__name__)

_MB = 1024 * 1024

_TERMINAL = frozenset({ImportStatus.COMPLETE, ImportStatus.ERROR})


class BulkSource(Protocol):
    """Where raw card records come from (ScryfallBulkClient in production)."""

    async def get_bulk_descriptor(self) -> BulkDescriptor: ...

    async def stream_records(
        self,
        descriptor: BulkDescriptor,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> list[RawCardRecord]: ...


@dataclass(frozen=True, slots=True)
class UpdateCheck:
    """Whether the stored cards are older than the latest bulk file."""

    needs_update: bool
    last_import: datetime | None
    last_source_update: datetime | None
    card_count: int


@dataclass(frozen=True, slots=True)
class ImportStatusSummary:
    has_cards: bool
    card_count: int
    last_import: datetime | None
    is_import_in_progress: bool
    last_progress: ImportProgress | None = None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive timestamps
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class _ProgressReporter:
    """Builds ImportProgress snapshots and forwards them to the callbacks."""

    def __init__(self, started_at: datetime, callbacks: Sequence[ProgressCallback]) -> None:
        self.started_at = started_at
        self._callbacks = callbacks

    def __call__(self, status: ImportStatus, message: str, **counts: int | None) -> None:
        progress = ImportProgress(
            status=status,
            message=message,
            started_at=self.started_at,
            ended_at=datetime.now(UTC) if status in _TERMINAL else None,
            **counts,
        )
        for callback in self._callbacks:
            callback(progress)


class CardImportService:
    """
    Imports Scryfall bulk data into the card store.

    Args:
        bulk_source: Provides the descriptor and the raw records
        gateway: Card store
        batch_size: Records per insert batch
        progress_interval: Records between processing progress reports
        debug_sink: Optional tracer for watched cards
    """

    def __init__(
        self,
        bulk_source: BulkSource,
        gateway: CardGateway,
        *,
        batch_size: int | None = None,
        progress_interval: int | None = None,
        debug_sink: DebugSink | None = None,
    ) -> None:
        self._bulk_source = bulk_source
        self._gateway = gateway
        self.batch_size = batch_size or settings.import_batch_size
        self.progress_interval = progress_interval or settings.progress_interval
        self._debug_sink = debug_sink
        self._current_run: asyncio.Task[ImportResult] | None = None
        self.last_progress: ImportProgress | None = None

    def is_import_in_progress(self) -> bool:
        return self._current_run is not None

    def _remember_progress(self, progress: ImportProgress) -> None:
        self.last_progress = progress

    async def import_cards(
        self,
        on_progress: ProgressCallback | None = None,
        clear_existing: bool = True,
    ) -> ImportResult:
        """
        Run a full import.

        Args:
            on_progress: Called synchronously with every progress snapshot
            clear_existing: Delete all stored cards before saving (full replace)

        Returns:
            ImportResult; success is False if any error was collected

        Raises:
            ImportInProgressError: Another import is running on this service
            BulkDataFetchError: The descriptor or payload could not be fetched
        """
        # Check and claim the run slot with no await in between
        if self._current_run is not None:
            raise ImportInProgressError()

        started_at = datetime.now(UTC)
        clock = time.monotonic()
        callbacks = [self._remember_progress]
        if on_progress is not None:
            callbacks.append(on_progress)
        report = _ProgressReporter(started_at, callbacks)

        self._current_run = asyncio.ensure_future(
            self._perform_import(report, clear_existing, clock)
        )
        try:
            return await self._current_run
        except BulkDataFetchError as e:
            logger.error("Import failed: %s", e)
            self._report_failure(report, e)
            raise
        except Exception as e:
            logger.exception("Import failed")
            self._report_failure(report, e)
            return ImportResult(
                success=False,
                total_processed=0,
                total_saved=0,
                total_skipped=0,
                total_errors=1,
                duration=time.monotonic() - clock,
                errors=(str(e),),
            )
        finally:
            self._current_run = None

    @staticmethod
    def _report_failure(report: _ProgressReporter, error: Exception) -> None:
        # The failing code may be the progress callback itself
        try:
            report(ImportStatus.ERROR, f"Import failed: {error}", error_count=1)
        except Exception:
            logger.exception("Progress callback failed while reporting an import error")

    async def _perform_import(
        self,
        report: _ProgressReporter,
        clear_existing: bool,
        clock: float,
    ) -> ImportResult:
        report(ImportStatus.FETCHING_METADATA, "Fetching Scryfall bulk data information...")
        descriptor = await self._bulk_source.get_bulk_descriptor()

        report(ImportStatus.DOWNLOADING, "Downloading card data from Scryfall...")

        def on_download(loaded: int, total: int) -> None:
            percentage = round(loaded / total * 100) if total else 0
            report(
                ImportStatus.DOWNLOADING,
                f"Downloading card data... {percentage}% "
                f"({round(loaded / _MB)}MB / {round(total / _MB)}MB)",
            )

        raw_cards = await self._bulk_source.stream_records(descriptor, on_download)
        total_cards = len(raw_cards)

        report(
            ImportStatus.PROCESSING,
            "Processing and filtering cards...",
            total_cards=total_cards,
        )

        def on_stage(message: str, processed: int, _total: int) -> None:
            report(
                ImportStatus.PROCESSING,
                f"{message}...",
                total_cards=total_cards,
                processed_cards=processed,
            )

        outcome = process_card_data(
            raw_cards,
            on_progress=on_stage,
            debug_sink=self._debug_sink,
            progress_interval=self.progress_interval,
        )
        records = outcome.records
        errors: list[str] = list(outcome.errors)

        report(
            ImportStatus.SAVING,
            "Saving cards to database...",
            total_cards=total_cards,
            processed_cards=len(records),
        )

        if clear_existing:
            await self._gateway.clear_all()

        def on_saved(saved: int, total: int) -> None:
            report(
                ImportStatus.SAVING,
                f"Saving cards to database... {saved}/{total}",
                total_cards=total_cards,
                processed_cards=len(records),
                saved_cards=saved,
            )

        summary = await write_in_batches(self._gateway, records, self.batch_size, on_saved)
        errors.extend(summary.errors)

        try:
            await self._gateway.replace_sets(outcome.release_dates)
        except SQLAlchemyError as e:
            logger.warning("Failed to save set release dates: %s", e)
            errors.append(f"Failed to save set release dates: {e}")

        errors.extend(await self._verify(records, summary, exact=clear_existing))

        stats = card_statistics(records)
        logger.info(
            "Import statistics: %d cards, %d commanders, %d companions",
            stats.total,
            stats.commanders,
            stats.companions,
        )

        duration = time.monotonic() - clock
        report(
            ImportStatus.COMPLETE,
            f"Import complete! Saved {summary.inserted} cards in {round(duration)}s",
            total_cards=total_cards,
            processed_cards=len(records),
            saved_cards=summary.inserted,
            error_count=len(errors),
        )

        return ImportResult(
            success=not errors,
            total_processed=len(records),
            total_saved=summary.inserted,
            total_skipped=total_cards - len(records),
            total_errors=len(errors),
            duration=duration,
            errors=tuple(errors),
        )

    async def _verify(
        self,
        records: Sequence[CanonicalCardRecord],
        summary: BatchWriteSummary,
        exact: bool,
    ) -> list[str]:
        """
        Cross-check stored counts against what was saved.

        Count comparisons only make sense after a full replace; orphaned
        search terms are checked either way.
        """
        logger.info("Verifying database integrity")
        saved = [record for record in records if record.identity_id in summary.inserted_ids]
        expected_commanders = sum(1 for record in saved if record.can_be_commander)
        expected_companions = sum(1 for record in saved if record.can_be_companion)

        try:
            card_count = await self._gateway.count("cards")
            term_count = await self._gateway.count("card_search_terms")
            commander_count = await self._gateway.count("cards", {"can_be_commander": True})
            companion_count = await self._gateway.count("cards", {"can_be_companion": True})
            orphaned = await self._gateway.count_orphaned_search_terms()
        except SQLAlchemyError as e:
            return [f"Verification failed: {e}"]

        logger.info(
            "Import verification: %d cards, %d search terms, %d commanders, %d companions",
            card_count,
            term_count,
            commander_count,
            companion_count,
        )

        issues: list[str] = []
        if exact:
            if card_count != summary.inserted:
                issues.append(
                    f"Card count mismatch: expected {summary.inserted}, found {card_count}"
                )
            if commander_count != expected_commanders:
                issues.append(
                    f"Commander count mismatch: expected {expected_commanders}, "
                    f"found {commander_count}"
                )
            if companion_count != expected_companions:
                issues.append(
                    f"Companion count mismatch: expected {expected_companions}, "
                    f"found {companion_count}"
                )
        if orphaned:
            issues.append(f"Found {orphaned} orphaned search terms")
        return issues

    async def check_for_updates(self) -> UpdateCheck:
        """
        Compare the bulk file timestamp with the last stored card.

        Assumes an update is needed when either side cannot be read.
        """
        try:
            descriptor = await self._bulk_source.get_bulk_descriptor()
            last_import = await self._gateway.most_recent_record_timestamp()
            card_count = await self._gateway.count("cards")
        except (BulkDataFetchError, SQLAlchemyError) as e:
            logger.warning("Error checking for updates: %s", e)
            return UpdateCheck(
                needs_update=True,
                last_import=None,
                last_source_update=None,
                card_count=0,
            )

        source_update = _as_utc(descriptor.updated_at)
        if last_import is not None:
            last_import = _as_utc(last_import)

        needs_update = last_import is None or source_update > last_import or card_count == 0
        return UpdateCheck(
            needs_update=needs_update,
            last_import=last_import,
            last_source_update=source_update,
            card_count=card_count,
        )

    async def get_import_status(self) -> ImportStatusSummary:
        card_count = await self._gateway.count("cards")
        last_import = await self._gateway.most_recent_record_timestamp()
        return ImportStatusSummary(
            has_cards=card_count > 0,
            card_count=card_count,
            last_import=_as_utc(last_import) if last_import is not None else None,
            is_import_in_progress=self.is_import_in_progress(),
            last_progress=self.last_progress,
        )
