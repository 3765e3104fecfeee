from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_socketio import SocketIO

from .config import is_production
from .relay import ConnectionRegistry, MessageRelay

# Global extension instances (imported in app factory and entrypoints)
# SocketIO: real-time relay transport; origins are set per app in init_extensions.
# JWTManager: bearer tokens for the HTTP API and the Socket.IO handshake.
socketio = SocketIO()
jwt = JWTManager()


def _emit_to_connection(event, payload, sid):
    socketio.emit(event, payload, to=sid)


relay = MessageRelay(ConnectionRegistry(), emit=_emit_to_connection)


def init_extensions(app):
    """Bind global extension objects to the Flask app instance.

    CORS is only installed outside production; in production the bundle is
    served from the same origin and Socket.IO accepts same-origin clients only.
    """
    if is_production(app.config["ENVIRONMENT"]):
        socket_origins = None
    else:
        socket_origins = app.config["CORS_ORIGINS"]
        CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    jwt.init_app(app)
    socketio.init_app(app, cors_allowed_origins=socket_origins)
