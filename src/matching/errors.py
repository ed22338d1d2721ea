"""Error types for the matching engine."""

from enum import Enum


class MatchingErrorClass(str, Enum):
    """Classification of matching errors.

    - VALIDATION: Malformed or missing criteria (caller's fault)
    - SOURCE_UNAVAILABLE: A candidate source failed or timed out
    - SCORING_SKIPPED: A single candidate could not be scored
    - ENGINE: Unexpected internal error
    """

    VALIDATION = "VALIDATION"
    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    SCORING_SKIPPED = "SCORING_SKIPPED"
    ENGINE = "ENGINE"


class MatchingError(Exception):
    """Base exception for matching errors.

    Provides structured error information for logging and responses.
    """

    def __init__(
        self,
        error_class: MatchingErrorClass,
        message: str,
        details: dict[str, str | int | float | None] | None = None,
    ) -> None:
        """Initialize the matching error.

        Args:
            error_class: Classification of the error.
            message: Human-readable error message.
            details: Additional structured error details.
        """
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.details = details or {}

    def to_dict(
        self,
    ) -> dict[str, str | dict[str, str | int | float | None]]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(MatchingError):
    """Criteria are missing required fields or carry malformed values.

    The only error that propagates out of ``rank``; HTTP callers map it
    to a 400 response.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize the validation error.

        Args:
            message: Human-readable error message.
            field: Name of the offending criteria field.
        """
        super().__init__(
            error_class=MatchingErrorClass.VALIDATION,
            message=message,
            details={"field": field} if field is not None else None,
        )
        self.field = field


class SourceUnavailable(MatchingError):
    """A candidate source failed; recorded in run metadata, never raised to callers."""

    def __init__(self, source: str, message: str) -> None:
        """Initialize the source error.

        Args:
            source: Name of the failing source.
            message: Failure description.
        """
        super().__init__(
            error_class=MatchingErrorClass.SOURCE_UNAVAILABLE,
            message=message,
            details={"source": source},
        )
        self.source = source


class ScoringSkipped(MatchingError):
    """A candidate could not be scored and is excluded from results."""

    def __init__(self, candidate_id: str, reason: str) -> None:
        """Initialize the skip signal.

        Args:
            candidate_id: ID of the skipped candidate.
            reason: Why the candidate could not be scored.
        """
        super().__init__(
            error_class=MatchingErrorClass.SCORING_SKIPPED,
            message=f"Candidate {candidate_id} skipped: {reason}",
            details={"candidate_id": candidate_id, "reason": reason},
        )
        self.candidate_id = candidate_id
        self.reason = reason
