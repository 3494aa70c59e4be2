from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class Connection:
    sid: str
    identity: Optional[str] = None
    display_name: str = 'Player'
    session_id: Optional[str] = None


class ConnectionRegistry:
    """Live connections keyed by Socket.IO sid, plus the online counter."""

    def __init__(self):
        self._by_sid: Dict[str, Connection] = {}

    def add(self, sid: str) -> Connection:
        conn = self._by_sid.get(sid)
        if conn is None:
            conn = Connection(sid=sid)
            self._by_sid[sid] = conn
        return conn

    def get(self, sid: str) -> Optional[Connection]:
        return self._by_sid.get(sid)

    def identify(self, sid: str, identity: Optional[str], display_name: str) -> Connection:
        conn = self.add(sid)
        conn.identity = identity
        conn.display_name = display_name
        return conn

    def remove(self, sid: str) -> Optional[Connection]:
        return self._by_sid.pop(sid, None)

    def clear_session(self, sid: str, session_id: str) -> None:
        conn = self._by_sid.get(sid)
        if conn is not None and conn.session_id == session_id:
            conn.session_id = None

    @property
    def online(self) -> int:
        return len(self._by_sid)
