from flask import current_app, request
from flask_socketio import emit
from typing import Any, Dict, Optional

from varachess import socketio
from varachess.services.sessions import InvalidTransition, Lobby, NotFound, RoomFull

# Field names older web clients still send
FIELD_ALIASES = {
    'sessionId': ('sessionId', 'roomId'),
    'identity': ('identity', 'wallet'),
    'displayName': ('displayName', 'username'),
}

REQUIRED_FIELDS = {
    'register': ('identity',),
    'find-match': ('identity',),
    'create-room': ('identity',),
    'join-room': ('sessionId', 'identity'),
    'move': ('sessionId', 'from', 'to'),
    'chat': ('sessionId', 'message'),
    'game-over': ('sessionId',),
    'resign': ('sessionId',),
}


def _lobby() -> Lobby:
    return current_app.extensions['varachess.lobby']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _field(data: Dict[str, Any], name: str):
    for key in FIELD_ALIASES.get(name, (name,)):
        if data.get(key) is not None:
            return data[key]
    return None


def _payload(event: str, data) -> Optional[Dict[str, Any]]:
    """Normalise an inbound payload, or reply bad-request and return None."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        emit('bad-request', {'event': event, 'message': 'payload must be an object'})
        return None
    fields = {name: _field(data, name) for name in ('sessionId', 'identity', 'displayName')}
    for key, value in data.items():
        fields.setdefault(key, value)
    missing = [name for name in REQUIRED_FIELDS.get(event, ()) if fields.get(name) is None]
    if missing:
        emit('bad-request', {'event': event, 'message': f"missing {', '.join(missing)}"})
        return None
    if not fields.get('displayName'):
        fields['displayName'] = current_app.config.get('DEFAULT_DISPLAY_NAME', 'Player')
    return fields


def handle_connect(auth=None):
    count = _lobby().connect(_get_sid())
    current_app.logger.info(f"[connect] sid={_get_sid()} online={count}")


def handle_disconnect(reason=None):
    current_app.logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")
    _lobby().disconnect(_get_sid())


def handle_register(data=None):
    p = _payload('register', data)
    if p is None:
        return
    _lobby().register(_get_sid(), p['identity'], p['displayName'])
    current_app.logger.info(f"[register] sid={_get_sid()} identity={p['identity']}")


def handle_find_match(data=None):
    p = _payload('find-match', data)
    if p is None:
        return
    _lobby().find_match(_get_sid(), p['identity'], p['displayName'])


def handle_cancel_match(data=None):
    _lobby().cancel_match(_get_sid())


def handle_create_room(data=None):
    p = _payload('create-room', data)
    if p is None:
        return
    _lobby().create_room(_get_sid(), p['identity'], p['displayName'])


def handle_join_room(data=None):
    p = _payload('join-room', data)
    if p is None:
        return
    try:
        _lobby().join_room(_get_sid(), p['sessionId'], p['identity'], p['displayName'])
    except (NotFound, RoomFull) as exc:
        current_app.logger.info(f"[room-error] session={p['sessionId']} identity={p['identity']} error={exc.message}")
        emit('room-error', {'message': exc.message})


def handle_move(data=None):
    p = _payload('move', data)
    if p is None:
        return
    _lobby().move(_get_sid(), p['sessionId'], p['from'], p['to'])


def handle_chat(data=None):
    p = _payload('chat', data)
    if p is None:
        return
    _lobby().chat(_get_sid(), p['sessionId'], p['message'])


def handle_game_over(data=None):
    p = _payload('game-over', data)
    if p is None:
        return
    try:
        _lobby().game_over(_get_sid(), p['sessionId'], p.get('winner'), p.get('loser'))
    except InvalidTransition as exc:
        emit('error', {'message': f"game has not started: {exc.message}"})


def handle_resign(data=None):
    p = _payload('resign', data)
    if p is None:
        return
    _lobby().resign(_get_sid(), p['sessionId'])


def handle_error(exc):
    # Errors stay scoped to the event that raised them
    event = (getattr(request, 'event', None) or {}).get('message')
    current_app.logger.exception(f"[socket-error] sid={_get_sid()} event={event} error={exc}")
    emit('error', {'message': 'internal error'})


EVENT_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'register': handle_register,
    'find-match': handle_find_match,
    'cancel-match': handle_cancel_match,
    'create-room': handle_create_room,
    'join-room': handle_join_room,
    'move': handle_move,
    'chat': handle_chat,
    'game-over': handle_game_over,
    'resign': handle_resign,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the game event handlers on ``namespace``."""
    for event, handler in EVENT_HANDLERS.items():
        socketio.on_event(event, handler, namespace=namespace)
    socketio.on_error_default(handle_error)
