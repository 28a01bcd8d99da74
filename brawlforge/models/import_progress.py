"""
Import progress and result models.

ImportProgress snapshots are handed to the progress callback at every stage
transition; ImportResult is the terminal value of one run.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ImportStatus(str, Enum):
    """Stages of a card import run."""

    IDLE = "idle"
    FETCHING_METADATA = "fetching_metadata"
    DOWNLOADING = "downloading_data"
    PROCESSING = "processing_cards"
    SAVING = "saving_to_database"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ImportProgress:
    """Point-in-time view of an import run."""

    status: ImportStatus
    message: str
    total_cards: int | None = None
    processed_cards: int | None = None
    saved_cards: int | None = None
    error_count: int | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None


ProgressCallback = Callable[[ImportProgress], None]


@dataclass(frozen=True, slots=True)
class ImportResult:
    """
    Outcome of one import run.

    success is True only when no error of any kind was collected. A run can
    save most cards and still report success=False; callers must look at
    both total_saved and errors.
    """

    success: bool
    total_processed: int
    total_saved: int
    total_skipped: int
    total_errors: int
    duration: float
    errors: tuple[str, ...] = ()
