from flask import Blueprint, jsonify

from .. import db

# Quiz blueprint: read-only access to stored quizzes. Answer keys are never
# projected out of the database, so they cannot leak to clients.
quiz_bp = Blueprint("quiz", __name__)


def _summary(doc):
    quiz = db.expose_id(doc)
    questions = quiz.pop("questions", None) or []
    quiz["questionCount"] = len(questions)
    return quiz


@quiz_bp.route("/api/quiz")
def list_quizzes():
    return jsonify({"quizzes": [_summary(q) for q in db.list_quizzes()]})


@quiz_bp.route("/api/quiz/<quiz_id>")
def get_quiz(quiz_id):
    quiz = db.get_quiz(quiz_id)
    if not quiz:
        return jsonify({"message": "Quiz not found"}), 404
    return jsonify({"quiz": db.expose_id(quiz)})
