from flask import abort, current_app, jsonify, request

from .config import is_production


def register_request_guards(app):
    """Request checks that run before any route handler."""

    @app.before_request
    def reject_disallowed_origin():
        # Outside production only; no Origin header means same-origin or server-to-server.
        if is_production(current_app.config["ENVIRONMENT"]):
            return
        origin = request.headers.get("Origin")
        if origin and origin not in current_app.config["CORS_ORIGINS"]:
            return jsonify({"message": f"Not allowed by CORS: {origin}"}), 403

    @app.before_request
    def enforce_body_limit():
        limit = current_app.config.get("MAX_CONTENT_LENGTH")
        if limit and request.content_length is not None and request.content_length > limit:
            abort(413)
