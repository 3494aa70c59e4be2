"""Durable records of players and games.

Writes are fire-and-forget from the live game's point of view: each runs in
its own transaction, rolls back and logs on failure, and treats a missing
game record (a late write for a retired session) as a no-op.
"""

import logging
import queue
import threading
from contextlib import nullcontext
from typing import Optional

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from varachess import db, socketio
from varachess.models import GameRecord, MoveRecord, User, utcnow

logger = logging.getLogger(__name__)


def _default_display_name():
    return current_app.config.get('DEFAULT_DISPLAY_NAME', 'Player')


def _commit(action: str, **fields) -> bool:
    try:
        db.session.commit()
        return True
    except SQLAlchemyError as exc:
        db.session.rollback()
        details = ' '.join(f'{k}={v}' for k, v in fields.items())
        logger.error('[persist-failed] action=%s %s error=%s', action, details, exc)
        return False


def _latest_game(session_id: str) -> Optional[GameRecord]:
    return (
        GameRecord.query.filter_by(session_id=session_id)
        .order_by(GameRecord.id.desc())
        .first()
    )


def _get_or_create_user(identity: str, display_name: Optional[str] = None) -> User:
    user = User.query.filter_by(identity=identity).first()
    if user is None:
        user = User(
            identity=identity,
            display_name=display_name or _default_display_name(),
            rating=current_app.config.get('INITIAL_RATING', 1000),
        )
        db.session.add(user)
    return user


def upsert_user(identity: str, display_name: Optional[str] = None) -> Optional[User]:
    if not identity:
        return None
    user = _get_or_create_user(identity, display_name)
    if display_name:
        user.display_name = display_name
    user.last_seen = utcnow()
    if not _commit('upsert_user', identity=identity):
        return None
    return user


def increment_user_stats(identity: str, wins: int = 0, losses: int = 0, rating: int = 0,
                         games_played: int = 0) -> None:
    user = _get_or_create_user(identity)
    # Columns may still be unset on a freshly added row
    user.wins = (user.wins or 0) + wins
    user.losses = (user.losses or 0) + losses
    user.rating = (user.rating if user.rating is not None else current_app.config.get('INITIAL_RATING', 1000)) + rating
    user.games_played = (user.games_played or 0) + games_played
    if _commit('increment_user_stats', identity=identity, rating=rating):
        logger.info('[stats] identity=%s wins+%d losses+%d rating%+d', identity, wins, losses, rating)


def create_game_record(session_id: str, player1: Optional[str], player2: Optional[str], kind: str,
                       status: str) -> None:
    db.session.add(GameRecord(session_id=session_id, player1=player1, player2=player2, kind=kind, status=status))
    _commit('create_game_record', session=session_id)


def append_move(session_id: str, from_square, to_square, timestamp=None) -> None:
    game = _latest_game(session_id)
    if game is None:
        logger.debug('[persist-skip] append_move session=%s no record', session_id)
        return
    db.session.add(MoveRecord(
        game=game,
        from_square=str(from_square),
        to_square=str(to_square),
        timestamp=timestamp or utcnow(),
    ))
    _commit('append_move', session=session_id)


def finish_game(session_id: str, status: str, winner: Optional[str], finished_at=None) -> None:
    game = _latest_game(session_id)
    if game is None:
        logger.debug('[persist-skip] finish_game session=%s no record', session_id)
        return
    game.status = status
    game.winner = winner
    game.finished_at = finished_at or utcnow()
    _commit('finish_game', session=session_id)


def query_leaderboard(limit: int = 100):
    return (
        User.query.filter(User.games_played > 0)
        .order_by(User.rating.desc())
        .limit(limit)
        .all()
    )


def query_user_games(identity: str, limit: int = 50):
    return (
        GameRecord.query.filter(
            db.or_(GameRecord.player1 == identity, GameRecord.player2 == identity),
            GameRecord.status == 'finished',
        )
        .order_by(GameRecord.finished_at.desc())
        .limit(limit)
        .all()
    )


def get_user(identity: str) -> Optional[User]:
    return User.query.filter_by(identity=identity).first()


class PersistenceWriter:
    """Runs gateway writes off the handler path, one at a time, in order.

    In inline mode (tests) jobs run immediately in the caller's thread.
    """

    def __init__(self, app, inline: bool = False):
        self.app = app
        self.inline = inline
        self._jobs = queue.Queue()
        self._started = False
        self._start_lock = threading.Lock()

    def submit(self, job, *args, **kwargs) -> None:
        if self.inline:
            self._run(job, args, kwargs)
            return
        self._ensure_worker()
        self._jobs.put((job, args, kwargs))

    def _ensure_worker(self) -> None:
        with self._start_lock:
            if self._started:
                return
            self._started = True
        socketio.start_background_task(self._drain)

    def _drain(self) -> None:
        while True:
            job, args, kwargs = self._jobs.get()
            self._run(job, args, kwargs)

    def _context(self):
        # Inline jobs share the caller's app context and session
        if has_app_context() and current_app._get_current_object() is self.app:
            return nullcontext()
        return self.app.app_context()

    def _run(self, job, args, kwargs) -> None:
        with self._context():
            try:
                job(*args, **kwargs)
            except Exception:
                # Live play never waits on storage; record the failure and move on
                db.session.rollback()
                logger.exception('[persist-failed] job=%s', getattr(job, '__name__', job))
