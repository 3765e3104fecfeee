import os

from flask import abort, jsonify, request, send_from_directory
from werkzeug.routing import Map, Rule

from .errors import api_not_found, is_api_path

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]
CLIENT_ENDPOINT = "client_app"


def _methods_of_other_routes(app, path):
    """Methods the concrete (non catch-all) rules accept for ``path``."""
    routes = app.extensions.get("quizchat.routes")
    if routes is None:
        routes = Map([
            Rule(rule.rule, methods=rule.methods, endpoint=rule.endpoint)
            for rule in app.url_map.iter_rules()
            if rule.endpoint != CLIENT_ENDPOINT
        ])
        app.extensions["quizchat.routes"] = routes
    return routes.bind("localhost").allowed_methods(path)


def register_client_routes(app, build_dir):
    """Serve the pre-built front-end bundle with client-side routing fallback.

    Registered last and only in production. Concrete API rules still win over
    the catch-all; a known path hit with the wrong method is a 405, and unknown
    paths under /api get the JSON 404 instead of the bundle.
    """

    @app.route("/", defaults={"path": ""}, methods=ALL_METHODS, endpoint=CLIENT_ENDPOINT)
    @app.route("/<path:path>", methods=ALL_METHODS, endpoint=CLIENT_ENDPOINT)
    def client_app(path):
        allowed = _methods_of_other_routes(app, "/" + path)
        if allowed:
            abort(405, valid_methods=allowed)
        if is_api_path("/" + path):
            return api_not_found()
        if request.method not in ("GET", "HEAD"):
            return jsonify({"message": "Route not found"}), 404
        if path and os.path.isfile(os.path.join(build_dir, path)):
            return send_from_directory(build_dir, path)
        return send_from_directory(build_dir, "index.html")
