"""Tests for matching error types."""

from src.matching.errors import (
    MatchingError,
    MatchingErrorClass,
    ScoringSkipped,
    SourceUnavailable,
    ValidationError,
)


class TestErrorTypes:
    """Tests for structured errors."""

    def test_validation_error(self) -> None:
        """ValidationError carries the offending field."""
        error = ValidationError("priceMax must be a number", field="priceMax")

        assert isinstance(error, MatchingError)
        assert error.to_dict() == {
            "error_class": "VALIDATION",
            "message": "priceMax must be a number",
            "details": {"field": "priceMax"},
        }

    def test_validation_error_without_field(self) -> None:
        """Field-less validation errors have empty details."""
        assert ValidationError("bad request").details == {}

    def test_source_unavailable(self) -> None:
        """SourceUnavailable names the source."""
        error = SourceUnavailable("exchange", "timed out after 3000 ms")

        assert error.error_class == MatchingErrorClass.SOURCE_UNAVAILABLE
        assert error.details == {"source": "exchange"}
        assert str(error) == "timed out after 3000 ms"

    def test_scoring_skipped(self) -> None:
        """ScoringSkipped names the candidate and reason."""
        error = ScoringSkipped("42", "negative price")

        assert error.error_class == MatchingErrorClass.SCORING_SKIPPED
        assert error.message == "Candidate 42 skipped: negative price"
