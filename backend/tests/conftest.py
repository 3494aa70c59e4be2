import os
import sys
import pytest

# Ensure the backend root (containing the `varachess` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from varachess import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/'
    SESSION_ID_LENGTH = 8
    DEFAULT_DISPLAY_NAME = 'Player'
    INITIAL_RATING = 1000
    LEADERBOARD_LIMIT = 100
    HISTORY_LIMIT = 50


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import varachess.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def lobby(flask_app):
    return flask_app.extensions['varachess.lobby']


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients; all are disconnected afterwards."""
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, namespace='/')
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected('/'):
            test_client.disconnect(namespace='/')


def received(test_client, name=None):
    """Drain a test client's inbox, optionally keeping only one event name."""
    events = test_client.get_received('/')
    if name is None:
        return events
    return [e for e in events if e['name'] == name]


class RecordingBroadcaster:
    """Stands in for Socket.IO delivery in unit tests."""

    def __init__(self):
        self.sent = []
        self.rooms = {}

    def reply(self, sid, event, payload=None):
        self.sent.append(('reply', sid, event, payload))

    def to_peers(self, session, sid, event, payload=None):
        for member in self.rooms.get(session.session_id, []):
            if member != sid:
                self.sent.append(('reply', member, event, payload))

    def to_session(self, session, event, payload=None):
        for member in self.rooms.get(session.session_id, []):
            self.sent.append(('reply', member, event, payload))

    def to_all(self, event, payload=None):
        self.sent.append(('all', None, event, payload))

    def bind(self, session, sid):
        self.rooms.setdefault(session.session_id, []).append(sid)

    def close(self, session):
        self.rooms.pop(session.session_id, None)

    def events_for(self, sid, event=None):
        return [
            (name, payload) for kind, target, name, payload in self.sent
            if target == sid and (event is None or name == event)
        ]


class RecordingSink:
    """Collects persistence jobs instead of running them."""

    def __init__(self):
        self.jobs = []

    def __call__(self, job, *args, **kwargs):
        self.jobs.append((job.__name__, args, kwargs))

    def named(self, name):
        return [(args, kwargs) for job, args, kwargs in self.jobs if job == name]
