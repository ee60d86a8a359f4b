"""Tests for the journal error taxonomy."""

from tradejournal.core.errors import (
    ErrorCategory,
    ErrorCodes,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


class TestErrors:
    """Tests for JournalError subclasses."""

    def test_validation_error(self):
        error = ValidationError({"date": "Date is required"})
        assert error.http_status == 422
        assert error.category is ErrorCategory.VALIDATION
        assert error.to_dict()["fieldErrors"] == {"date": "Date is required"}
        assert "date" in error.user_message

    def test_persistence_error_is_retryable(self):
        error = PersistenceError(detail="offline")
        assert error.is_retryable
        assert error.http_status == 503
        assert error.code == "PERSISTENCE_2001"
        assert "offline" in error.technical_message

    def test_delete_failure_code(self):
        error = PersistenceError(ErrorCodes.PERSISTENCE_DELETE_FAILED)
        assert error.to_dict()["code"] == "PERSISTENCE_2002"

    def test_not_found_error(self):
        error = NotFoundError("t1")
        assert error.record_id == "t1"
        assert error.http_status == 404
        assert not error.is_retryable
        assert "id=t1" in str(error)

    def test_invalid_transition(self):
        error = InvalidTransitionError("submit", "closed")
        assert error.http_status == 409
        assert error.detail == "cannot submit while closed"
