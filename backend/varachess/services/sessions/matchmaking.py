from collections import deque
from typing import Deque, List, Optional

from .connections import Connection


class MatchmakingQueue:
    """FIFO of connections waiting for a random opponent.

    An identity is queued at most once; a repeated request replaces the old
    entry.
    """

    def __init__(self):
        self._waiting: Deque[Connection] = deque()

    def remove_identity(self, identity: Optional[str]) -> Optional[Connection]:
        if identity is None:
            return None
        for conn in self._waiting:
            if conn.identity == identity:
                self._waiting.remove(conn)
                return conn
        return None

    def remove(self, sid: str) -> Optional[Connection]:
        for conn in self._waiting:
            if conn.sid == sid:
                self._waiting.remove(conn)
                return conn
        return None

    def pop_oldest(self) -> Optional[Connection]:
        if not self._waiting:
            return None
        return self._waiting.popleft()

    def push(self, conn: Connection) -> None:
        self._waiting.append(conn)

    def snapshot(self) -> List[Connection]:
        return list(self._waiting)

    def __len__(self) -> int:
        return len(self._waiting)
