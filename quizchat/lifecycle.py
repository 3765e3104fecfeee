"""Process-level shutdown and crash policy."""
import logging
import os
import signal
import sys
import threading

log = logging.getLogger(__name__)


def shutdown(connector, reason="app termination"):
    """Close the database pool; returns the exit code for the process."""
    try:
        connector.close(reason)
    except Exception:
        log.exception("Error during app termination")
        return 1
    log.info("MongoDB connection closed through %s", reason)
    return 0


def _crash_on_unhandled(args):
    # A worker thread died with an exception nobody handled: state is no longer trusted.
    if issubclass(args.exc_type, SystemExit):
        return
    log.critical(
        "Unhandled exception in thread %s",
        getattr(args.thread, "name", "?"),
        exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
    )
    os._exit(1)


def install_process_handlers(connector):
    """SIGINT -> graceful shutdown; unhandled thread exceptions -> exit 1."""

    def on_sigint(signum, frame):
        sys.exit(shutdown(connector, "SIGINT"))

    signal.signal(signal.SIGINT, on_sigint)
    threading.excepthook = _crash_on_unhandled
    return on_sigint
