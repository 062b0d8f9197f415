# cricket_api/errors.py
from __future__ import annotations


class ScoringError(Exception):
    """Base class for failures reported by the scoring core."""
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ScoringError):
    """Raised when a match, team or player id does not resolve."""
    kind = "not_found"


class InvalidState(ScoringError):
    """Raised when an operation does not apply to the match's current state."""
    kind = "invalid_state"


class ValidationError(ScoringError):
    """Raised for malformed input (out-of-range runs, conflicting flags, missing ids)."""
    kind = "validation_error"


class ConflictError(ScoringError):
    """Raised when a commit races another writer (stale match version)."""
    kind = "conflict"
