"""
Failure classification for the card import core.

Only two situations are raised to callers as exceptions:

- The bulk source could not be fetched (the run cannot start or continue)
- An import was requested while another one is still running

Everything else that can go wrong during an import (a malformed record,
a failed batch insert, an integrity issue found after saving) is collected
as a value and reported through ``ImportResult.errors``.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Concurrency
    IMPORT_IN_PROGRESS = "import_in_progress"

    # Service failures
    EXTERNAL_API_ERROR = "external_api_error"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail for API responses."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class BulkDataFetchError(KnownError):
    """
    Raised when the bulk data descriptor or payload cannot be retrieved.

    Aborts the import run; nothing has been written when this is raised.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.EXTERNAL_API_ERROR,
            message=message,
            detail=detail,
            suggestion="Check network connectivity to Scryfall and retry.",
            status_code=502,
        )


class ImportInProgressError(KnownError):
    """Raised when an import is requested while another one is running."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.IMPORT_IN_PROGRESS,
            message="Import already in progress",
            suggestion="Wait for the current import to finish.",
            status_code=409,
        )
