import os


def _origins(value):
    value = (value or '*').strip()
    if value == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///varachess.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = _origins(os.environ.get('CORS_ORIGINS'))
    # Socket.IO namespace the game events are served on
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Live session ids are short codes players can share
    SESSION_ID_LENGTH = int(os.environ.get('SESSION_ID_LENGTH', '8'))
    DEFAULT_DISPLAY_NAME = os.environ.get('DEFAULT_DISPLAY_NAME', 'Player')
    INITIAL_RATING = int(os.environ.get('INITIAL_RATING', '1000'))
    LEADERBOARD_LIMIT = int(os.environ.get('LEADERBOARD_LIMIT', '100'))
    HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT', '50'))
    PORT = int(os.environ.get('PORT', '8050'))
