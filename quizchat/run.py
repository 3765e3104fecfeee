"""Application entrypoint for running the SocketIO server.

Usage:
  python -m quizchat.run
  # or, once installed
  quizchat

The database is connected before the listener starts; a failed connection is
fatal and the process exits 1.
"""
import logging
import os
import sys

from . import config, create_app
from .db import DatabaseConnectionError, connector
from .extensions import socketio
from .lifecycle import install_process_handlers
from .log_config import configure_logging

log = logging.getLogger(__name__)


def main():
    configure_logging(config.LOG_LEVEL)
    app = create_app()
    production = config.is_production(app.config["ENVIRONMENT"])

    try:
        connector.connect(
            app.config["MONGODB_URI"],
            production=production,
            db_name=app.config["MONGODB_DB_NAME"],
        )
    except DatabaseConnectionError as e:
        log.critical(str(e))
        sys.exit(1)

    install_process_handlers(connector)

    log.info(f"Server running on port {config.PORT}")
    log.info(f"Environment: {app.config['ENVIRONMENT']}")
    log.info(f"Client URL: {config.CLIENT_URL}")

    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('1', 'true', 'yes')
    socketio.run(
        app,
        host='0.0.0.0',
        port=config.PORT,
        debug=debug_mode,
        use_reloader=False,
        allow_unsafe_werkzeug=True,
    )


if __name__ == '__main__':
    main()
