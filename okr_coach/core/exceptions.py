"""
Custom exception hierarchy for the OKR coach.

All application exceptions inherit from OKRCoachError.
"""


class OKRCoachError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(OKRCoachError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(OKRCoachError):
    """Session-related error."""

    pass


class SessionNotFoundError(SessionError):
    """Session does not exist."""

    pass


class SessionCompletedError(SessionError):
    """Attempted a turn on a session whose OKR is already completed."""

    pass


# =============================================================================
# Transition Errors
# =============================================================================


class TransitionError(OKRCoachError):
    """Base for phase transition errors."""

    pass


class InvalidTransitionError(TransitionError):
    """Phase transition rejected by the validator.

    Carries the full list of violated rules so callers can surface all of
    them at once.
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = list(errors or [])


# =============================================================================
# Snapshot Errors
# =============================================================================


class SnapshotError(OKRCoachError):
    """Base for snapshot and rollback errors."""

    pass


class SnapshotNotFoundError(SnapshotError):
    """Snapshot does not exist."""

    pass


class RollbackError(SnapshotError):
    """Rollback could not be performed."""

    pass


# =============================================================================
# Persistence Errors
# =============================================================================


class PersistenceError(OKRCoachError):
    """Storage read or write failed; nothing was committed."""

    pass


# =============================================================================
# Scoring / Input Errors
# =============================================================================


class ScoringError(OKRCoachError):
    """Scorer called with input it cannot handle (not a text problem)."""

    pass


class ValidationError(OKRCoachError):
    """Input validation failed."""

    pass
