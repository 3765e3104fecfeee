from flask import Blueprint, request, jsonify

from .. import db

leaderboard_bp = Blueprint("leaderboard", __name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@leaderboard_bp.route("/api/leaderboard")
def leaderboard():
    """Users ordered by stored total score (ties by username).

    Response: {"leaders": [{"rank", "id", "username", "totalScore"}, ...]}
    """
    try:
        limit = int(request.args.get("limit", DEFAULT_LIMIT))
    except ValueError:
        return jsonify({"message": "limit must be an integer"}), 400
    limit = max(1, min(limit, MAX_LIMIT))

    leaders = []
    for rank, doc in enumerate(db.top_users(limit), start=1):
        user = db.public_user(doc)
        leaders.append({
            "rank": rank,
            "id": user["id"],
            "username": user.get("username"),
            "totalScore": user.get("totalScore", 0),
        })
    return jsonify({"leaders": leaders})
