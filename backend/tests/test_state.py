import pytest

from varachess.services.sessions import InvalidTransition, RoomFull
from varachess.services.sessions.rating import (
    as_increments,
    game_over_deltas,
    resignation_deltas,
)
from varachess.services.sessions.state import (
    FINISHED,
    PLAYING,
    WAITING,
    Participant,
    new_random_session,
    new_room,
)
from varachess.services.sessions.store import SessionStore


def _seat(sid, identity=None):
    return Participant(sid=sid, identity=identity or f'wallet-{sid}', display_name=sid, side='')


def test_invited_room_walks_every_status():
    room = new_room('ROOM0001', _seat('a'))
    assert room.status == WAITING
    room.seat(_seat('b'))
    assert room.status == PLAYING
    room.finish('wallet-a')
    assert room.status == FINISHED
    assert room.finished_at is not None


def test_status_never_skips_or_reverses():
    room = new_room('ROOM0002', _seat('a'))
    with pytest.raises(InvalidTransition):
        room.finish('wallet-a')
    assert room.status == WAITING

    game = new_random_session('GAME0001', _seat('a'), _seat('b'))
    game.finish(None)
    with pytest.raises(InvalidTransition):
        game.advance(PLAYING)
    with pytest.raises(InvalidTransition):
        game.advance(FINISHED)


def test_second_seat_only_once():
    room = new_room('ROOM0003', _seat('a'))
    room.seat(_seat('b'))
    with pytest.raises(RoomFull):
        room.seat(_seat('c'))
    assert room.second.sid == 'b'


def test_resignation_winner_is_structural():
    game = new_random_session('GAME0002', _seat('a'), _seat('b'))
    assert game.resignation_winner('a') == 'wallet-b'
    assert game.resignation_winner('b') == 'wallet-a'
    # a connection outside the session counts as the second player
    assert game.resignation_winner('zz') == 'wallet-a'

    room = new_room('ROOM0004', _seat('a'))
    assert room.resignation_winner('a') is None


def test_rating_deltas_are_fixed_and_independent():
    win, loss = game_over_deltas('w', 'l')
    assert (win.identity, win.rating, win.wins, win.games_played) == ('w', 25, 1, 1)
    assert (loss.identity, loss.rating, loss.losses, loss.games_played) == ('l', -15, 1, 1)
    assert win.rating + loss.rating != 0

    win, resigner = resignation_deltas('w', 'r')
    assert (win.rating, resigner.rating) == (25, -20)
    assert as_increments(resigner) == ('r', {'wins': 0, 'losses': 1, 'rating': -20, 'games_played': 1})


def test_rating_needs_both_identities():
    assert game_over_deltas('w', None) == []
    assert game_over_deltas(None, 'l') == []
    assert resignation_deltas(None, 'r') == []


def test_store_retires_only_the_live_instance():
    store = SessionStore()
    old = new_room('SAME0001', _seat('a'))
    store.add(old)
    assert store.retire(old) is True
    assert store.retire(old) is False

    fresh = new_room('SAME0001', _seat('b'))
    store.add(fresh)
    assert store.retire(old) is False
    assert store.get('SAME0001') is fresh
    assert store.get(None) is None
