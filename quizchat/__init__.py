"""Backend package initialization.

Key concepts:
- create_app(): Flask application factory used by run.py and the tests.
- Blueprints: auth, chat history, quiz, progress, leaderboard; each owns its URL space under /api/*.
- Extensions: SocketIO (message relay), CORS (non-production), JWT via extensions.init_extensions.
- Database: one pymongo pool per process (db.connector), connected by run.py before serving.
"""

from datetime import datetime, timezone

from flask import Flask, jsonify, current_app
from . import config
from . import socket_events  # noqa: F401  registers the relay's Socket.IO handlers
from .db import connector
from .extensions import init_extensions
from .errors import register_error_handlers
from .guards import register_request_guards
from .frontend import register_client_routes
from .api.auth import auth_bp
from .api.chat import chat_bp
from .api.quiz import quiz_bp
from .api.progress import progress_bp
from .api.leaderboard import leaderboard_bp


def utc_timestamp():
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_app(overrides=None):
    """Application factory.

    Responsibilities:
    1. Instantiate Flask app & load settings (config module, then ``overrides``).
    2. Install request guards (CORS origin check, body ceiling) and extensions.
    3. Register API blueprints and the /health probe.
    4. In production, serve the front-end bundle with SPA fallback.
    5. Install the global error handlers.

    Returns: Configured Flask application instance.
    """
    app = Flask(__name__, static_folder=None)
    app.config.update(config.flask_config())
    if overrides:
        app.config.update(overrides)
    if not app.config.get("JWT_SECRET_KEY"):
        raise RuntimeError(
            "JWT_SECRET_KEY (or SECRET_KEY) environment variable must be set and non-empty for token signing."
        )
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = app.config["JWT_SECRET_KEY"]

    register_request_guards(app)
    init_extensions(app)
    app.register_blueprint(auth_bp)
    app.register_blueprint(chat_bp)
    app.register_blueprint(quiz_bp)
    app.register_blueprint(progress_bp)
    app.register_blueprint(leaderboard_bp)

    @app.route("/health")
    def health():
        return jsonify({
            "status": "OK",
            "timestamp": utc_timestamp(),
            "environment": current_app.config["ENVIRONMENT"],
            "database": connector.status,
        })

    if config.is_production(app.config["ENVIRONMENT"]):
        register_client_routes(app, app.config["CLIENT_BUILD_DIR"])

    register_error_handlers(app)
    return app
