"""
Centralized Exception Hierarchy for RecallForge.

All custom exceptions inherit from RecallForgeError for easy catching.

Helpful Error Messages
----------------------
Each exception includes:
- user_message: Human-readable description of what went wrong
- why_it_happened: Explanation of the root cause
- how_to_fix: Actionable steps to resolve the issue
- error_code: Unique identifier for documentation lookup (e.g., "RF-SES-002")

Usage
-----
    from recallforge.core.exceptions import (
        RecallForgeError,
        SessionError,
        InvalidQualityError,
    )

    try:
        coordinator.answer(item_id, quality)
    except SessionError as e:
        logger.warning(f"Rejected answer: {e}")

Exception Hierarchy
-------------------
    RecallForgeError (base)
    ├── ValidationError
    │   └── InvalidQualityError
    ├── ConfigurationError
    ├── SessionError
    │   ├── SessionNotStartedError
    │   ├── OutOfOrderAnswerError
    │   ├── AlreadyAnsweredError
    │   ├── AdvanceBlockedError
    │   └── SessionCompleteError
    └── StorageError
        └── CorruptStateError
"""

from typing import Any, List, Optional


class RecallForgeError(Exception):
    """
    Base exception for all RecallForge errors.

    Example
    -------
        try:
            coordinator.answer("bonjour", 4)
        except RecallForgeError as e:
            print(f"{e.error_code}: {e}")
            print(f"Fix: {e.how_to_fix}")
    """

    error_code: str = "RF-ERR-000"
    why_it_happened: str = "An unexpected error occurred"
    how_to_fix: List[str] = ["Check the error message for details"]

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        why_it_happened: Optional[str] = None,
        how_to_fix: Optional[List[str]] = None,
    ) -> None:
        """Initialize RecallForgeError with helpful information.

        Args:
            message: Human-readable error message
            error_code: Unique identifier (e.g., "RF-SES-001")
            why_it_happened: Explanation of root cause
            how_to_fix: List of actionable fix suggestions
        """
        super().__init__(message)

        if error_code is not None:
            self.error_code = error_code
        if why_it_happened is not None:
            self.why_it_happened = why_it_happened
        if how_to_fix is not None:
            self.how_to_fix = how_to_fix

    @property
    def user_message(self) -> str:
        """Get the user-friendly error message."""
        return str(self)

    def format_help(self) -> str:
        """Render the message, cause and fixes as a multi-line string."""
        lines = [f"[{self.error_code}] {self.user_message}"]
        lines.append(f"  Why: {self.why_it_happened}")
        for fix in self.how_to_fix:
            lines.append(f"  - {fix}")
        return "\n".join(lines)


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(RecallForgeError):
    """
    Raised when caller-supplied input breaks a documented contract.
    """

    error_code = "RF-VAL-000"
    why_it_happened = "An argument was outside the range the operation accepts"
    how_to_fix = ["Check the argument against the documented contract"]


class InvalidQualityError(ValidationError):
    """
    Raised when an answer quality is not an integer in 0..5.

    Example
    -------
        compute_next(state, 7, now)
        # Raises: InvalidQualityError("Quality must be 0-5, got 7")
    """

    error_code = "RF-VAL-001"
    why_it_happened = "Answer quality is a 0-5 recall-strength rating"
    how_to_fix = [
        "Map answers with quality_from_answer() (incorrect=1, hard=3, correct=4)",
        "Pass an int between 0 and 5 inclusive",
    ]

    def __init__(self, quality: Any) -> None:
        super().__init__(f"Quality must be 0-5, got {quality!r}")
        self.quality = quality


class ConfigurationError(RecallForgeError):
    """
    Raised when configuration values are inconsistent or out of range.
    """

    error_code = "RF-CFG-001"
    why_it_happened = "A configuration value failed validation at load time"
    how_to_fix = [
        "Check recallforge.yaml for typos or out-of-range values",
        "Check RECALLFORGE_* environment variables",
        "Delete the config file to fall back to defaults",
    ]


# ============================================================================
# Session Exceptions
# ============================================================================


class SessionError(RecallForgeError):
    """
    Base exception for study-session contract violations.

    Session errors never modify progress: the coordinator is left exactly
    as it was before the rejected call.
    """

    error_code = "RF-SES-000"
    why_it_happened = "The session received a call that its current state does not allow"
    how_to_fix = ["Check session.current_item and session.can_advance before calling"]


class SessionNotStartedError(SessionError):
    """Raised when answering or advancing before start_session()."""

    error_code = "RF-SES-001"
    why_it_happened = "No queue has been built for this coordinator yet"
    how_to_fix = ["Call start_session() or resume() first"]


class OutOfOrderAnswerError(SessionError):
    """Raised when an answer targets an item other than the queue head."""

    error_code = "RF-SES-002"
    why_it_happened = "Answers must be given for the item at the session cursor"
    how_to_fix = [
        "Answer session.current_item",
        "Advance past the current item before answering the next one",
    ]

    def __init__(self, item_id: str, expected: str) -> None:
        super().__init__(
            f"Answer for '{item_id}' is out of order; current item is '{expected}'"
        )
        self.item_id = item_id
        self.expected = expected


class AlreadyAnsweredError(SessionError):
    """Raised when the current item is answered a second time."""

    error_code = "RF-SES-003"
    why_it_happened = "Each queued item accepts exactly one answer per session"
    how_to_fix = ["Call advance() to move to the next item"]


class AdvanceBlockedError(SessionError):
    """Raised when advance() is called while the gate is closed."""

    error_code = "RF-SES-004"
    why_it_happened = (
        "The current item is unanswered, or was answered incorrectly and "
        "has not been acknowledged"
    )
    how_to_fix = [
        "Answer the current item first",
        "Call acknowledge() after showing feedback for an incorrect answer",
    ]


class SessionCompleteError(SessionError):
    """Raised when a completed or ended session receives answers or advances."""

    error_code = "RF-SES-005"
    why_it_happened = "The cursor already passed the last item, or end_session() was called"
    how_to_fix = ["Start a new session with start_session()"]


# ============================================================================
# Storage Exceptions
# ============================================================================


class StorageError(RecallForgeError):
    """
    Base exception for persistence failures.

    Raised by key-value store adapters when a read or write cannot be
    completed. Nothing is retried internally.
    """

    error_code = "RF-STO-000"
    why_it_happened = "The progress store could not be read or written"
    how_to_fix = [
        "Check that the data directory exists and is writable",
        "Retry the operation",
    ]


class CorruptStateError(StorageError):
    """
    Raised when a persisted payload cannot be parsed into a ProgressStore.

    ProgressRepository.load() catches this and falls back to an empty store.
    """

    error_code = "RF-STO-001"
    why_it_happened = "The persisted progress blob is not valid JSON or has an unexpected shape"
    how_to_fix = [
        "Restore the data file from a backup",
        "Run 'recallforge reset --yes' to start over",
    ]
