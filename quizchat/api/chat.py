from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from .. import db
from ..extensions import relay

chat_bp = Blueprint("chat", __name__)

DEFAULT_HISTORY = 50
MAX_HISTORY = 200
MAX_MESSAGE_CHARS = 4000


@chat_bp.route("/api/chat", methods=["POST"])
@jwt_required()
def send_message():
    """Persist a direct message and push it to the receiver's live sessions.

    Body: {"receiverId": str, "content": str}
    The live copy uses the same ``receiveMessage`` event as socket-originated
    messages, so clients handle both paths identically.
    """
    sender_id = get_jwt_identity()
    data = request.get_json(silent=True) or {}
    receiver_id = str(data.get("receiverId") or "").strip()
    content = (data.get("content") or "").strip()
    if not receiver_id or not content:
        return jsonify({"message": "receiverId and content are required"}), 400
    if len(content) > MAX_MESSAGE_CHARS:
        return jsonify({"message": f"Message exceeds {MAX_MESSAGE_CHARS} characters"}), 400

    message = db.expose_id(db.insert_chat_message(sender_id, receiver_id, content))
    delivered = relay.deliver(receiver_id, message)
    return jsonify({"message": message, "delivered": delivered}), 201


@chat_bp.route("/api/chat/<peer_id>")
@jwt_required()
def history(peer_id):
    """Conversation between the caller and ``peer_id``, oldest first."""
    try:
        limit = int(request.args.get("limit", DEFAULT_HISTORY))
    except ValueError:
        return jsonify({"message": "limit must be an integer"}), 400
    limit = max(1, min(limit, MAX_HISTORY))
    messages = db.fetch_conversation(get_jwt_identity(), peer_id, limit)
    return jsonify({"messages": [db.expose_id(m) for m in messages]})
