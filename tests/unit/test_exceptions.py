"""Unit tests for custom exception hierarchy"""
import logging
import pytest
from datetime import datetime
from habitcore.exceptions import (
    HabitCoreError,
    CatalogError,
    StorageError,
    InvariantViolation,
)


class TestHabitCoreError:
    """Test base exception class"""

    def test_basic_exception(self):
        """Test basic exception creation"""
        error = HabitCoreError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"
        assert error.request_id is not None
        assert isinstance(error.timestamp, datetime)
        assert error.context == {}

    def test_exception_with_context(self):
        """Test exception with full context"""
        cause = ValueError("Original error")
        error = HabitCoreError(
            "Save failed",
            user_id="local-user",
            request_id="req-1",
            operation="save_state",
            context={"key": "habitcore:local-user:streaks"},
            cause=cause,
        )
        assert error.user_id == "local-user"
        assert error.request_id == "req-1"
        assert error.operation == "save_state"
        assert error.context["key"] == "habitcore:local-user:streaks"
        assert error.cause is cause

    def test_to_dict(self):
        """Test serialization for diagnostics"""
        error = HabitCoreError("Test error", operation="load_state", request_id="req-2")
        data = error.to_dict()

        assert data["error"] == "HabitCoreError"
        assert data["message"] == "Test error"
        assert data["operation"] == "load_state"
        assert data["request_id"] == "req-2"
        assert "timestamp" in data

    def test_logs_on_creation(self, caplog):
        """Test that errors are logged when created"""
        with caplog.at_level(logging.ERROR, logger="habitcore.exceptions"):
            HabitCoreError("Logged error")

        assert "HabitCoreError: Logged error" in caplog.text


class TestSubclasses:
    """Test specialized exceptions"""

    def test_catalog_error(self):
        error = CatalogError("Duplicate id", achievement_id="FIRST_WORKOUT")
        assert error.achievement_id == "FIRST_WORKOUT"
        assert error.operation == "load_catalog"

    def test_storage_error(self):
        error = StorageError("Redis SET failed", key="habitcore:u:habits", operation="set")
        assert error.key == "habitcore:u:habits"
        assert error.operation == "set"
        assert error.context == {"key": "habitcore:u:habits"}

    def test_invariant_violation_is_raisable(self):
        with pytest.raises(HabitCoreError):
            raise InvariantViolation("points drifted")
