"""Tests for custom exceptions."""

import logging

from utils.exceptions import (
    ConfigurationError,
    ContentAnalysisError,
    EmptyTranscriptError,
    FillerRuleError,
    InputValidationError,
    SpeechCoachError,
    SummaryStoreError,
)


class TestSpeechCoachError:
    """Tests for base SpeechCoachError."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = SpeechCoachError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.cause is None
        assert error.context == {}

    def test_error_with_context_and_cause(self):
        """Test error string includes context and cause."""
        original = ValueError("Original error")
        error = SpeechCoachError("Wrapper error", context={"session": "s1"}, cause=original)

        assert str(error) == (
            "Wrapper error [session=s1] caused by: ValueError: Original error"
        )
        assert error.cause is original

    def test_to_dict(self):
        """Test dictionary form used for logging."""
        error = SpeechCoachError("Oops", cause=KeyError("k"))
        result = error.to_dict()

        assert result["type"] == "SpeechCoachError"
        assert result["cause"] == "KeyError"
        assert "timestamp" in result

    def test_to_json(self):
        """Test API-facing dictionary form."""
        result = EmptyTranscriptError().to_json()
        assert result == {
            "error_code": "SC101",
            "error_type": "EmptyTranscriptError",
            "message": "Transcript is empty",
        }

    def test_log(self, caplog):
        """Test that log() emits at the requested level."""
        error = SpeechCoachError("Logged failure")

        with caplog.at_level(logging.WARNING, logger="utils.exceptions"):
            error.log(logging.WARNING)

        assert "Logged failure" in caplog.text


class TestErrorHierarchy:
    """Tests for error subclasses."""

    def test_input_errors(self):
        """Test the input validation error chain."""
        assert isinstance(EmptyTranscriptError(), InputValidationError)
        assert isinstance(InputValidationError("bad"), SpeechCoachError)

    def test_filler_rule_error(self):
        """Test FillerRuleError attributes and base class."""
        error = FillerRuleError("Bad rule", rule_id="like")

        assert isinstance(error, ConfigurationError)
        assert error.rule_id == "like"
        assert error.context["rule_id"] == "like"
        assert error.error_code == "SC201"

    def test_content_analysis_error(self):
        """Test ContentAnalysisError attributes."""
        error = ContentAnalysisError("Timed out", attempts=3)

        assert error.attempts == 3
        assert "attempts=3" in str(error)

    def test_summary_store_error(self):
        """Test SummaryStoreError attributes."""
        error = SummaryStoreError("Write failed", session_id="s1", context={"store": "memory"})

        assert error.session_id == "s1"
        assert error.context == {"store": "memory", "session_id": "s1"}
