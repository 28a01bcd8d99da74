"""
Card processing pipeline.

Runs the pure stages of an import over raw Scryfall printings:
filter -> release dates -> dedupe -> transform -> validate.
Stages run strictly one after another; nothing here touches the network
or the database.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from brawlforge.config import settings
from brawlforge.models.canonical_card import CanonicalCardRecord, SelectedPrinting
from brawlforge.models.scryfall import RawCardRecord
from brawlforge.services.debug import DebugSink
from brawlforge.services.record_filter import filter_eligible_cards
from brawlforge.services.record_transformer import transform_card, validate_records
from brawlforge.services.version_selector import build_release_dates, deduplicate_cards

logger = logging.getLogger(__name__)

# (processed, total)
CountProgress = Callable[[int, int], None]
# (stage message, processed, total)
StageProgress = Callable[[str, int, int], None]


@dataclass
class ProcessingOutcome:
    """Everything the processing stage hands to the saving stage."""

    records: list[CanonicalCardRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    eligible_count: int = 0
    unique_count: int = 0
    release_dates: dict[str, str] = field(default_factory=dict)


def process_cards(
    selected: Sequence[SelectedPrinting],
    on_progress: CountProgress | None = None,
    debug_sink: DebugSink | None = None,
    progress_interval: int = 100,
) -> tuple[list[CanonicalCardRecord], list[str]]:
    """
    Transform selected printings, skipping the ones that blow up.

    Progress is reported at 0, every progress_interval records, and once
    more at the end.

    Returns:
        (records, errors) - one error string per skipped card
    """
    total = len(selected)
    logger.info("Processing %d cards", total)

    records: list[CanonicalCardRecord] = []
    errors: list[str] = []

    if on_progress is not None:
        on_progress(0, total)

    for index, choice in enumerate(selected, start=1):
        name = choice.card.get("name", "<unnamed>")
        try:
            record = transform_card(choice)
        except Exception as e:
            logger.warning("Failed to process card %s: %s", name, e)
            errors.append(f"Failed to process card {name}: {e}")
        else:
            records.append(record)
            if debug_sink is not None:
                debug_sink(
                    "transformed",
                    str(name),
                    {
                        "display_name": record.display_name,
                        "search_key": record.search_key,
                        "search_terms": [term.term for term in record.search_terms],
                        "can_be_commander": record.can_be_commander,
                    },
                )

        if on_progress is not None and index % progress_interval == 0 and index != total:
            on_progress(index, total)

    if on_progress is not None:
        on_progress(total, total)

    logger.info("Successfully processed %d/%d cards", len(records), total)
    return records, errors


def process_card_data(
    cards: Iterable[RawCardRecord],
    on_progress: StageProgress | None = None,
    debug_sink: DebugSink | None = None,
    progress_interval: int | None = None,
    target_format: str | None = None,
) -> ProcessingOutcome:
    """
    Run the full processing pipeline over a raw bulk payload.

    Args:
        cards: Raw printings as downloaded
        on_progress: Called with a stage message and (processed, total) counts
        debug_sink: Optional tracer for watched cards
        progress_interval: Records between transformation progress reports
        target_format: Format to filter for; defaults to settings

    Returns:
        ProcessingOutcome with valid records and accumulated errors
    """
    interval = progress_interval or settings.progress_interval

    def report(message: str, processed: int, total: int) -> None:
        if on_progress is not None:
            on_progress(message, processed, total)

    logger.info("Starting card processing pipeline")
    outcome = ProcessingOutcome()

    report("Filtering cards", 0, 0)
    eligible = filter_eligible_cards(cards, target_format=target_format, debug_sink=debug_sink)
    outcome.eligible_count = len(eligible)

    # Release dates come from the filtered set only
    outcome.release_dates = build_release_dates(eligible)

    report("Deduplicating cards", 0, len(eligible))
    selected = deduplicate_cards(eligible, outcome.release_dates, debug_sink=debug_sink)
    outcome.unique_count = len(selected)

    def transform_progress(processed: int, total: int) -> None:
        report(f"Processing cards ({processed}/{total})", processed, total)

    transformed, transform_errors = process_cards(
        selected,
        on_progress=transform_progress,
        debug_sink=debug_sink,
        progress_interval=interval,
    )
    outcome.errors.extend(transform_errors)

    validation = validate_records(transformed)
    if not validation.is_valid:
        logger.warning("Card validation found %d issues", len(validation.errors))
    if validation.warnings:
        logger.warning("Card validation produced %d warnings", len(validation.warnings))

    outcome.records = validation.valid_records
    outcome.errors.extend(validation.errors)
    outcome.warnings = validation.warnings

    logger.info("Card processing pipeline complete: %d records", len(outcome.records))
    return outcome
