"""Errors raised by the tutoring engine."""


class TutoringError(Exception):
    """Base class for engine errors reported to callers"""


class InvalidInput(TutoringError, ValueError):
    """Empty expression list, unknown expression id, or blank utterance"""


class SessionNotFound(TutoringError, KeyError):
    """Operation referenced an unknown or expired session id"""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session {self.session_id} not found. Start a new session to continue."


class SessionAlreadyComplete(TutoringError):
    """Answer submitted after every expression was completed"""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session {self.session_id} is already complete. Check the summary or start a new session."


class CollaboratorFailure(TutoringError):
    """Scenario generator or expression store failed; recovered inside the engine"""
