"""Centralised error translation for the HTTP API.

Order of precedence follows Flask's lookup: status-code handlers (404) first,
then the most specific exception class.
"""
import logging

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import API_PREFIX, is_production
from .db import DatabaseUnavailableError

log = logging.getLogger(__name__)


def is_api_path(path):
    return path == API_PREFIX or path.startswith(API_PREFIX + "/")


def api_not_found():
    return jsonify({"message": "API route not found"}), 404


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        if is_api_path(request.path):
            return api_not_found()
        return jsonify({"message": "Route not found"}), 404

    @app.errorhandler(DatabaseUnavailableError)
    def database_unavailable(e):
        log.error(f"{request.method} {request.path}: {e}")
        return jsonify({"message": "Database unavailable"}), 503

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"message": e.description}), e.code

    @app.errorhandler(Exception)
    def unhandled(e):
        log.exception(f"Global error handler: {request.method} {request.path}")
        body = {"message": "Internal server error"}
        if not is_production(current_app.config["ENVIRONMENT"]):
            body["error"] = str(e)
        return jsonify(body), 500
