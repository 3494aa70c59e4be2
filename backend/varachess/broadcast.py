from typing import Any, Dict, Optional


def session_room(session_id: str) -> str:
    return f"session:{session_id}"


class SocketBroadcaster:
    """Outbound delivery over Socket.IO.

    Session members share a room named after the session; the room is closed
    when the session is retired.
    """

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def _emit(self, event: str, payload: Optional[Dict[str, Any]], **kwargs) -> None:
        if payload is None:
            self.socketio.emit(event, namespace=self.namespace, **kwargs)
        else:
            self.socketio.emit(event, payload, namespace=self.namespace, **kwargs)

    def reply(self, sid: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self._emit(event, payload, to=sid)

    def to_peers(self, session, sid: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self._emit(event, payload, to=session_room(session.session_id), skip_sid=sid)

    def to_session(self, session, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self._emit(event, payload, to=session_room(session.session_id))

    def to_all(self, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self._emit(event, payload)

    def bind(self, session, sid: str) -> None:
        self.socketio.server.enter_room(sid, session_room(session.session_id), namespace=self.namespace)

    def close(self, session) -> None:
        self.socketio.server.close_room(session_room(session.session_id), namespace=self.namespace)
