"""Live game sessions: connections, matchmaking, rooms and outcomes.

Everything here is in-memory and owned by a single ``Lobby`` per app. Socket
handlers call into the lobby; durable writes go through the persistence
gateway and never block a handler.
"""

from .lobby import Lobby
from .state import InvalidTransition, NotFound, RoomFull, SessionError

__all__ = ['Lobby', 'SessionError', 'NotFound', 'RoomFull', 'InvalidTransition']
