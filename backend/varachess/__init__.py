from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
# async_handlers=False keeps each client's events in arrival order
socketio = SocketIO(async_mode=None, async_handlers=False)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = flask_app.config.get('CORS_ORIGINS', '*')
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    # Live game state: empty at startup, lost on restart
    from varachess.services.persistence import PersistenceWriter
    from varachess.services.sessions import Lobby
    from varachess.broadcast import SocketBroadcaster

    writer = PersistenceWriter(flask_app, inline=flask_app.config.get('TESTING', False))
    flask_app.extensions['varachess.writer'] = writer
    flask_app.extensions['varachess.lobby'] = Lobby(
        broadcaster=SocketBroadcaster(socketio, namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/')),
        persist=writer.submit,
        session_id_length=flask_app.config.get('SESSION_ID_LENGTH', 8),
    )

    from varachess.main import main
    flask_app.register_blueprint(main)

    from varachess.api.players import players
    flask_app.register_blueprint(players, url_prefix='/api')

    from varachess.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database tables."""
        import varachess.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
