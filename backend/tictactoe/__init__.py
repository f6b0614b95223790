from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

SESSION_KEY = 'game_session'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One authoritative session per app instance
    from tictactoe.models import Session
    flask_app.extensions[SESSION_KEY] = Session()

    from tictactoe.main import main
    flask_app.register_blueprint(main)

    from tictactoe.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from tictactoe.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    return flask_app


def get_session(app=None):
    """Return the session owned by ``app`` (defaults to the current app)."""
    if app is None:
        from flask import current_app
        app = current_app
    return app.extensions[SESSION_KEY]
