import os
import sys
import pytest

# Ensure the backend root (containing the `tictactoe` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from tictactoe import create_app, socketio
from tictactoe.socketio_events import NAMESPACE


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    RESET_SETTLE_MS = 0
    RESET_COOLDOWN_MS = 2000
    LOG_LEVEL = 'DEBUG'
    PORT = 8080


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_client(flask_app):
    """Factory for extra socket connections; all are disconnected on teardown."""
    created = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE,
        )
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_client):
    return make_client()