"""Custom exceptions for the speech coaching engine.

Provides a hierarchy of exceptions for proper error handling
and differentiation of error types.
"""

import logging
from datetime import datetime
from typing import Any

# ============================================================================
# Base Exception
# ============================================================================

class SpeechCoachError(Exception):
    """Base exception for all speech coaching errors.

    Attributes:
        message: Human-readable error message
        context: Dictionary with additional error context
        cause: Original exception that caused this error
        timestamp: When the error occurred
        error_code: Unique error code for this exception type
    """

    error_code: str = "SC000"

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None
    ):
        """Initialize SpeechCoachError.

        Args:
            message: Human-readable error message
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now()

    def __str__(self) -> str:
        """Return string representation with context."""
        parts = [self.message]

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"[{context_str}]")

        if self.cause:
            parts.append(f"caused by: {type(self.cause).__name__}: {self.cause}")

        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "cause": type(self.cause).__name__ if self.cause else None,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> dict[str, Any]:
        """Convert exception to a JSON-serializable dictionary for API responses.

        Returns:
            Dictionary containing error_code, error_type, and message.
        """
        return {
            "error_code": self.error_code,
            "error_type": self.__class__.__name__,
            "message": str(self),
        }

    def log(self, level: int = logging.ERROR) -> None:
        """Log this exception with context.

        Args:
            level: Logging level (default: ERROR)
        """
        from utils.logger import get_logger
        logger = get_logger(__name__)
        logger.log(level, self.message, extra={
            "exception_type": self.__class__.__name__,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        })


# ============================================================================
# Input Errors
# ============================================================================

class InputValidationError(SpeechCoachError):
    """Base exception for rejected caller input."""

    error_code: str = "SC100"


class EmptyTranscriptError(InputValidationError):
    """Transcript is empty or whitespace-only.

    Raised before any scoring takes place; callers map it to a
    user-facing failure.
    """

    error_code: str = "SC101"

    def __init__(self, message: str = "Transcript is empty", **kwargs: Any):
        super().__init__(message, **kwargs)


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(SpeechCoachError):
    """Error in configuration/settings."""

    error_code: str = "SC200"


class FillerRuleError(ConfigurationError):
    """Invalid filler rule definition.

    Attributes:
        rule_id: Identifier of the offending rule, if known
    """

    error_code: str = "SC201"

    def __init__(
        self,
        message: str,
        rule_id: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None
    ):
        context = context or {}
        context.update({"rule_id": rule_id})

        super().__init__(message, context=context, cause=cause)
        self.rule_id = rule_id


# ============================================================================
# Collaborator Errors
# ============================================================================

class ContentAnalysisError(SpeechCoachError):
    """ContentAnalyzer call failed, timed out or returned an unusable payload.

    Attributes:
        attempts: Number of attempts made before giving up
    """

    error_code: str = "SC300"

    def __init__(
        self,
        message: str,
        attempts: int | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None
    ):
        context = context or {}
        context.update({"attempts": attempts})

        super().__init__(message, context=context, cause=cause)
        self.attempts = attempts


class SummaryStoreError(SpeechCoachError):
    """Error reading or writing learning summaries.

    Attributes:
        session_id: Session key involved in the failed operation
    """

    error_code: str = "SC400"

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None
    ):
        context = context or {}
        context.update({"session_id": session_id})

        super().__init__(message, context=context, cause=cause)
        self.session_id = session_id
