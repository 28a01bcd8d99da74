from brawlforge.models.canonical_card import (
    CanonicalCardRecord,
    DisplayHints,
    SearchTerm,
    SearchTermRow,
    SelectedPrinting,
)
from brawlforge.models.failure import (
    BulkDataFetchError,
    FailureDetail,
    FailureKind,
    ImportInProgressError,
    KnownError,
)
from brawlforge.models.import_progress import (
    ImportProgress,
    ImportResult,
    ImportStatus,
    ProgressCallback,
)
from brawlforge.models.scryfall import BulkDescriptor, CardFace, ImageUris, RawCardRecord

__all__ = [
    "BulkDataFetchError",
    "BulkDescriptor",
    "CanonicalCardRecord",
    "CardFace",
    "DisplayHints",
    "FailureDetail",
    "FailureKind",
    "ImageUris",
    "ImportInProgressError",
    "ImportProgress",
    "ImportResult",
    "ImportStatus",
    "KnownError",
    "ProgressCallback",
    "RawCardRecord",
    "SearchTerm",
    "SearchTermRow",
    "SelectedPrinting",
]
