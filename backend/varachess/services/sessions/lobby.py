import logging
import threading
from typing import Callable, Optional

from varachess.services import persistence as gateway
from .connections import Connection, ConnectionRegistry
from .matchmaking import MatchmakingQueue
from .rating import as_increments, game_over_deltas, resignation_deltas
from .state import (
    FINISHED,
    PLAYING,
    DARK,
    MoveEntry,
    NotFound,
    Participant,
    RoomFull,
    Session,
    new_random_session,
    new_room,
    utcnow,
)
from .store import SessionStore

logger = logging.getLogger(__name__)


def _participant(conn: Connection, side: str = '') -> Participant:
    return Participant(sid=conn.sid, identity=conn.identity, display_name=conn.display_name, side=side)


class Lobby:
    """Owns the live connections, the matchmaking queue and the session store.

    One coarse lock guards the registry, queue and store; each session has its
    own lock for moves and finishing. When both are needed the session lock is
    taken first. Anything looked up before a lock was taken is re-checked
    against the store once it is held.

    ``persist(job, *args)`` hands a gateway write to the persistence writer and
    returns immediately; ``broadcaster`` delivers outbound events.
    """

    def __init__(self, broadcaster, persist: Callable, session_id_length: int = 8):
        self.broadcaster = broadcaster
        self._persist = persist
        self._lock = threading.RLock()
        self.connections = ConnectionRegistry()
        self.queue = MatchmakingQueue()
        self.store = SessionStore(id_length=session_id_length)

    # ---- connections ----

    def connect(self, sid: str) -> int:
        with self._lock:
            self.connections.add(sid)
            count = self.connections.online
        self.broadcaster.to_all('online-count', {'count': count})
        return count

    def register(self, sid: str, identity: str, display_name: str) -> Connection:
        with self._lock:
            conn = self.connections.identify(sid, identity, display_name)
        self._persist(gateway.upsert_user, identity, display_name)
        return conn

    def disconnect(self, sid: str) -> None:
        with self._lock:
            conn = self.connections.remove(sid)
            if conn is None:
                return
            count = self.connections.online
        self.broadcaster.to_all('online-count', {'count': count})

        with self._lock:
            self.queue.remove(sid)
        self._abandon(sid, conn.session_id)

    def _abandon(self, sid: str, session_id: Optional[str]) -> None:
        with self._lock:
            session = self.store.get(session_id)
        if session is None:
            return
        with session.lock:
            with self._lock:
                if not self.store.contains(session) or session.participant_for(sid) is None:
                    return
                if session.status == PLAYING:
                    session.advance(FINISHED)
                self._retire(session)
            # Abandonment: no ratings, no persisted winner
            self.broadcaster.to_peers(session, sid, 'opponent-disconnected', {'sessionId': session.session_id})
            self.broadcaster.close(session)
        logger.info('[abandon] session=%s sid=%s', session.session_id, sid)

    def _leave_current(self, sid: str) -> None:
        """Drop the connection's queue entry and abandon the session it holds.

        A connection sits in at most one session; starting another one ends
        the previous one exactly as a disconnect would.
        """
        with self._lock:
            self.queue.remove(sid)
            conn = self.connections.get(sid)
            current = conn.session_id if conn else None
        if current is not None:
            self._abandon(sid, current)

    # ---- matchmaking ----

    def find_match(self, sid: str, identity: str, display_name: str) -> Optional[Session]:
        self._leave_current(sid)
        with self._lock:
            conn = self.connections.identify(sid, identity, display_name)
            self.queue.remove_identity(identity)
            opponent = self.queue.pop_oldest()
            if opponent is None:
                self.queue.push(conn)
                session = None
            else:
                session = new_random_session(self.store.new_id(), _participant(opponent), _participant(conn))
                self.store.add(session)
                opponent.session_id = session.session_id
                conn.session_id = session.session_id
        self._persist(gateway.upsert_user, identity, display_name)

        if session is None:
            self.broadcaster.reply(sid, 'waiting-for-match')
            logger.info('[queue] identity=%s waiting=%d', identity, len(self.queue))
            return None

        self._persist(
            gateway.create_game_record,
            session.session_id, session.first.identity, session.second.identity, session.kind, session.status,
        )
        for seat, other in ((session.first, session.second), (session.second, session.first)):
            self.broadcaster.bind(session, seat.sid)
            self.broadcaster.reply(seat.sid, 'match-found', {
                'sessionId': session.session_id,
                'side': seat.side,
                'opponent': other.public(),
            })
        logger.info(
            '[match] session=%s light=%s dark=%s', session.session_id, session.first.identity, session.second.identity
        )
        return session

    def cancel_match(self, sid: str) -> bool:
        with self._lock:
            removed = self.queue.remove(sid) is not None
        if removed:
            self.broadcaster.reply(sid, 'match-cancelled')
        return removed

    # ---- rooms ----

    def create_room(self, sid: str, identity: str, display_name: str) -> Session:
        self._leave_current(sid)
        with self._lock:
            conn = self.connections.identify(sid, identity, display_name)
            session = new_room(self.store.new_id(), _participant(conn))
            self.store.add(session)
            conn.session_id = session.session_id
        self._persist(gateway.upsert_user, identity, display_name)
        self.broadcaster.bind(session, sid)
        self.broadcaster.reply(sid, 'room-created', {'sessionId': session.session_id, 'side': session.first.side})
        logger.info('[room] created session=%s by=%s', session.session_id, identity)
        return session

    def join_room(self, sid: str, session_id: str, identity: str, display_name: str) -> Session:
        """Take the second slot of an invited room.

        Raises NotFound for an unknown id and RoomFull when the second slot is
        already taken; neither touches the existing session nor the one the
        caller currently holds.
        """
        with self._lock:
            session = self.store.get(session_id)
        if session is None:
            raise NotFound()
        with session.lock:
            if session.second is not None or session.participant_for(sid) is not None:
                raise RoomFull()
        self._leave_current(sid)
        with self._lock:
            conn = self.connections.identify(sid, identity, display_name)
        with session.lock:
            with self._lock:
                if not self.store.contains(session):
                    raise NotFound()
                session.seat(_participant(conn, DARK))
                conn.session_id = session.session_id
        self._persist(gateway.upsert_user, identity, display_name)
        self._persist(
            gateway.create_game_record,
            session.session_id, session.first.identity, session.second.identity, session.kind, session.status,
        )
        self.broadcaster.bind(session, sid)
        self.broadcaster.reply(session.first.sid, 'opponent-joined', {'opponent': session.second.public()})
        self.broadcaster.reply(sid, 'room-joined', {
            'sessionId': session.session_id,
            'side': session.second.side,
            'opponent': session.first.public(),
        })
        logger.info('[room] joined session=%s by=%s', session.session_id, identity)
        return session

    # ---- in-game events ----

    def _live(self, session_id: Optional[str]) -> Optional[Session]:
        with self._lock:
            return self.store.get(session_id)

    def _still_live(self, session: Session) -> bool:
        with self._lock:
            return self.store.contains(session)

    def move(self, sid: str, session_id: str, from_square, to_square) -> Optional[MoveEntry]:
        session = self._live(session_id)
        if session is None:
            logger.debug('[stale] move session=%s', session_id)
            return None
        with session.lock:
            if not self._still_live(session):
                return None
            entry = MoveEntry(from_square=from_square, to_square=to_square)
            session.moves.append(entry)
            self.broadcaster.to_peers(session, sid, 'move', {'from': from_square, 'to': to_square})
            # Enqueued under the session lock so stored moves keep relay order
            self._persist(gateway.append_move, session.session_id, from_square, to_square, entry.timestamp)
        logger.debug('[move] session=%s %s-%s', session_id, from_square, to_square)
        return entry

    def chat(self, sid: str, session_id: str, message) -> bool:
        session = self._live(session_id)
        if session is None:
            return False
        with self._lock:
            conn = self.connections.get(sid)
        sender = session.participant_for(sid)
        display_name = sender.display_name if sender else (conn.display_name if conn else None)
        with session.lock:
            if not self._still_live(session):
                return False
            self.broadcaster.to_peers(session, sid, 'chat', {
                'displayName': display_name,
                'message': message,
                'timestamp': utcnow().isoformat(),
            })
        logger.debug('[chat] session=%s from=%s', session_id, display_name)
        return True

    # ---- outcomes ----

    def game_over(self, sid: str, session_id: str, winner: Optional[str], loser: Optional[str]) -> Optional[Session]:
        session = self._live(session_id)
        if session is None:
            logger.debug('[stale] game-over session=%s', session_id)
            return None
        with session.lock:
            with self._lock:
                if not self.store.contains(session):
                    return None
                session.finish(winner)
                self._retire(session)
            self.broadcaster.to_session(session, 'game-ended', {'winner': winner})
            self.broadcaster.close(session)
        self._persist(gateway.finish_game, session.session_id, session.status, winner, session.finished_at)
        self._apply(game_over_deltas(winner, loser))
        logger.info('[finish] session=%s winner=%s loser=%s', session_id, winner, loser)
        return session

    def resign(self, sid: str, session_id: str) -> Optional[Session]:
        session = self._live(session_id)
        if session is None:
            logger.debug('[stale] resign session=%s', session_id)
            return None
        with session.lock:
            with self._lock:
                if not self.store.contains(session):
                    return None
                conn = self.connections.get(sid)
                seat = session.participant_for(sid)
                resigner = seat.identity if seat else (conn.identity if conn else None)
                winner = session.resignation_winner(sid)
                # An unanswered invitation just closes; it was never recorded
                was_playing = session.status == PLAYING
                if was_playing:
                    session.finish(winner)
                self._retire(session)
            self.broadcaster.to_session(session, 'player-resigned', {'resignedIdentity': resigner, 'winner': winner})
            self.broadcaster.close(session)
        if was_playing:
            self._persist(gateway.finish_game, session.session_id, session.status, winner, session.finished_at)
            self._apply(resignation_deltas(winner, resigner))
        logger.info('[resign] session=%s resigned=%s winner=%s', session_id, resigner, winner)
        return session

    def _apply(self, deltas) -> None:
        for delta in deltas:
            identity, increments = as_increments(delta)
            self._persist(gateway.increment_user_stats, identity, **increments)

    def _retire(self, session: Session) -> None:
        # Caller holds the lobby lock
        self.store.retire(session)
        for seat in session.participants:
            self.connections.clear_session(seat.sid, session.session_id)

    # ---- introspection ----

    @property
    def online(self) -> int:
        with self._lock:
            return self.connections.online

    def waiting_count(self) -> int:
        with self._lock:
            return len(self.queue)

    def session(self, session_id: str) -> Optional[Session]:
        return self._live(session_id)
