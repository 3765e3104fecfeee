import logging
from logging.config import dictConfig


def build_log_config(level="INFO"):
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "quizchat": {
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
            # Socket.IO / Engine.IO are chatty at INFO (every packet).
            "socketio": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "engineio": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "pymongo": {"handlers": ["default"], "level": "WARNING", "propagate": False},
        },
    }


def configure_logging(level="INFO"):
    """Apply the process-wide logging config and return the application logger."""
    dictConfig(build_log_config(level))
    return logging.getLogger("quizchat")
