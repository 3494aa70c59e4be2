"""Session records and their lifecycle.

A session moves ``waiting -> playing -> finished`` and never backwards.
Random sessions are born ``playing``; invited rooms are born ``waiting`` and
start playing exactly when the second slot fills.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

WAITING = 'waiting'
PLAYING = 'playing'
FINISHED = 'finished'

STATUS_ORDER = (WAITING, PLAYING, FINISHED)

RANDOM = 'random'
INVITED = 'invited'

LIGHT = 'light'
DARK = 'dark'


class SessionError(Exception):
    """Base class for errors surfaced to the caller of a session operation."""

    message = 'Session error'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class NotFound(SessionError):
    message = 'Room not found'


class RoomFull(SessionError):
    message = 'Room is full'


class InvalidTransition(SessionError):
    message = 'Invalid session transition'


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Participant:
    sid: str
    identity: Optional[str]
    display_name: str
    side: str

    def public(self) -> Dict[str, Any]:
        return {'identity': self.identity, 'displayName': self.display_name}


@dataclass
class MoveEntry:
    from_square: Any
    to_square: Any
    timestamp: datetime = field(default_factory=utcnow)


@dataclass
class Session:
    session_id: str
    kind: str
    first: Participant
    second: Optional[Participant] = None
    status: str = WAITING
    moves: List[MoveEntry] = field(default_factory=list)
    winner: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def participants(self) -> List[Participant]:
        return [p for p in (self.first, self.second) if p is not None]

    def participant_for(self, sid: str) -> Optional[Participant]:
        for p in self.participants:
            if p.sid == sid:
                return p
        return None

    def advance(self, status: str) -> None:
        """Move to the next status; skipping or going backwards is refused."""
        current = STATUS_ORDER.index(self.status)
        target = STATUS_ORDER.index(status)
        if target != current + 1:
            raise InvalidTransition(f'{self.status} -> {status}')
        self.status = status
        if status == FINISHED:
            self.finished_at = utcnow()

    def seat(self, participant: Participant) -> None:
        if self.second is not None:
            raise RoomFull()
        self.second = participant
        self.advance(PLAYING)

    def finish(self, winner: Optional[str] = None) -> None:
        self.advance(FINISHED)
        self.winner = winner

    def resignation_winner(self, sid: str) -> Optional[str]:
        """The side opposite the resigning connection wins.

        Anyone not holding the first slot counts as the second player.
        """
        if self.first.sid == sid:
            return self.second.identity if self.second else None
        return self.first.identity


def new_random_session(session_id: str, waiting: Participant, arriving: Participant) -> Session:
    waiting.side = LIGHT
    arriving.side = DARK
    return Session(session_id=session_id, kind=RANDOM, first=waiting, second=arriving, status=PLAYING)


def new_room(session_id: str, creator: Participant) -> Session:
    creator.side = LIGHT
    return Session(session_id=session_id, kind=INVITED, first=creator, status=WAITING)
