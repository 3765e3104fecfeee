from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from .. import db

progress_bp = Blueprint("progress", __name__)


def _non_negative_int(value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


@progress_bp.route("/api/progress")
@jwt_required()
def list_progress():
    """Quiz attempts of the token holder, newest first."""
    records = db.fetch_progress(get_jwt_identity())
    return jsonify({"progress": [db.expose_id(r) for r in records]})


@progress_bp.route("/api/progress", methods=["POST"])
@jwt_required()
def record_progress():
    """Record one attempt.

    Body: {"quizId": str, "score": int, "total": int}
    The score is taken as reported; grading happens client-side. It is also
    added to the user's running total used by the leaderboard.
    """
    user_id = get_jwt_identity()
    data = request.get_json(silent=True) or {}
    quiz_id = str(data.get("quizId") or "").strip()
    score = _non_negative_int(data.get("score"))
    total = _non_negative_int(data.get("total"))
    if not quiz_id or score is None or total is None or score > total:
        return jsonify({"message": "quizId, score and total are required (0 <= score <= total)"}), 400

    record = db.insert_progress(user_id, quiz_id, score, total)
    db.add_score(user_id, score)
    return jsonify({"progress": db.expose_id(record)}), 201
