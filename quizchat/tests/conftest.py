import pytest

from quizchat import create_app
from quizchat.extensions import relay, socketio
from quizchat.security import issue_token

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
DEV_ORIGIN = "http://localhost:3000"


@pytest.fixture
def make_app():
    def _make(**overrides):
        settings = {
            "TESTING": True,
            "JWT_SECRET_KEY": TEST_SECRET,
            "SECRET_KEY": TEST_SECRET,
            "ENVIRONMENT": "development",
            "CORS_ORIGINS": [DEV_ORIGIN],
        }
        settings.update(overrides)
        return create_app(settings)
    return _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def token_for(app):
    def _token(user_id):
        with app.app_context():
            return issue_token(user_id)
    return _token


@pytest.fixture
def auth_header(token_for):
    def _header(user_id):
        return {"Authorization": f"Bearer {token_for(user_id)}"}
    return _header


@pytest.fixture
def socket_for(app, token_for):
    """Connect a Socket.IO test client authenticated as ``user_id``."""
    opened = []

    def _connect(user_id, join=True):
        c = socketio.test_client(app, auth={"token": token_for(user_id)})
        opened.append(c)
        if join:
            c.emit("join", user_id)
        return c

    yield _connect
    for c in opened:
        if c.is_connected():
            c.disconnect()


@pytest.fixture(autouse=True)
def reset_relay():
    relay.registry.clear()
    yield
    relay.registry.clear()
