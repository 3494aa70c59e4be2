import secrets
import string
from typing import Dict, Optional

from .state import Session

SESSION_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_session_id(length: int = 8) -> str:
    return ''.join(secrets.choice(SESSION_ID_ALPHABET) for _ in range(length))


class SessionStore:
    """Live sessions keyed by session id. Callers hold the lobby lock."""

    def __init__(self, id_length: int = 8):
        self._sessions: Dict[str, Session] = {}
        self._id_length = id_length

    def new_id(self) -> str:
        """Generate a session id that no live session is using."""
        while True:
            session_id = generate_session_id(self._id_length)
            if session_id not in self._sessions:
                return session_id

    def add(self, session: Session) -> None:
        self._sessions[session.session_id] = session

    def get(self, session_id: Optional[str]) -> Optional[Session]:
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def contains(self, session: Session) -> bool:
        return self._sessions.get(session.session_id) is session

    def retire(self, session: Session) -> bool:
        """Drop the session if it is still the live one under its id."""
        if self.contains(session):
            del self._sessions[session.session_id]
            return True
        return False
