"""
BrawlForge services.

Card import pipeline (filter, version selection, transformation) and card
search.
"""

from brawlforge.services.card_import import (
    BulkSource,
    CardImportService,
    ImportStatusSummary,
    UpdateCheck,
)
from brawlforge.services.card_processor import (
    ProcessingOutcome,
    process_card_data,
    process_cards,
)
from brawlforge.services.card_search import (
    BatchSearchResult,
    CardSearchService,
    SearchResult,
)
from brawlforge.services.debug import DebugSink, make_watch_sink
from brawlforge.services.name_normalizer import (
    get_modification_info,
    normalize_for_display,
    normalize_for_search,
)
from brawlforge.services.record_filter import filter_eligible_cards, is_eligible
from brawlforge.services.record_transformer import (
    ValidationReport,
    card_statistics,
    transform_card,
    validate_records,
)
from brawlforge.services.scryfall_client import ScryfallBulkClient
from brawlforge.services.search_terms import generate_query_variations, generate_search_terms
from brawlforge.services.version_selector import (
    build_release_dates,
    deduplicate_cards,
    select_canonical_version,
)

__all__ = [
    "BatchSearchResult",
    "BulkSource",
    "CardImportService",
    "CardSearchService",
    "DebugSink",
    "ImportStatusSummary",
    "ProcessingOutcome",
    "ScryfallBulkClient",
    "SearchResult",
    "UpdateCheck",
    "ValidationReport",
    "build_release_dates",
    "card_statistics",
    "deduplicate_cards",
    "filter_eligible_cards",
    "generate_query_variations",
    "generate_search_terms",
    "get_modification_info",
    "is_eligible",
    "make_watch_sink",
    "normalize_for_display",
    "normalize_for_search",
    "process_card_data",
    "process_cards",
    "select_canonical_version",
    "transform_card",
    "validate_records",
]
