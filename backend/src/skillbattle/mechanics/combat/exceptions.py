"""
Exception hierarchy for battle resolution and persistence.

Resolution errors abort before any delta is produced. Persistence errors mean
the action was not applied. Unknown status-effect types are not errors: they
are logged and skipped by the resolver.
"""
from typing import Optional


class BattleError(Exception):
    """Base exception for all battle errors."""

    pass


class InvalidInputError(BattleError):
    """Raised when actor, target or move data is malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class SessionConflictError(BattleError):
    """Raised when a session write loses a version compare-and-set."""

    def __init__(
        self,
        message: str,
        session_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
    ):
        super().__init__(message)
        self.session_id = session_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class StaleTurnError(SessionConflictError):
    """Raised when a submitted turn can no longer be committed.

    Either the session already moved past the turn, or every retry against
    refreshed state lost the race. The caller must refresh and resubmit.
    """

    def __init__(
        self,
        message: str,
        session_id: Optional[str] = None,
        turn: Optional[int] = None,
        attempts: int = 0,
        actual_version: Optional[int] = None,
    ):
        super().__init__(message, session_id=session_id, actual_version=actual_version)
        self.turn = turn
        self.attempts = attempts


class PersistenceFailureError(BattleError):
    """Raised when the shared session store cannot be reached."""

    def __init__(self, message: str, session_id: Optional[str] = None, error: Optional[Exception] = None):
        super().__init__(message)
        self.session_id = session_id
        self.original_error = error


class InvalidPhaseError(BattleError):
    """Raised when a battle engine operation is not allowed in the current phase."""

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.phase = phase
