# quizchat/api/auth.py
import re

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from pymongo.errors import DuplicateKeyError
from werkzeug.security import generate_password_hash, check_password_hash

from .. import db
from ..security import issue_token

auth_bp = Blueprint('auth', __name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD = 6


def _session_payload(user_doc):
    return {'token': issue_token(user_doc['_id']), 'user': db.public_user(user_doc)}


@auth_bp.route('/api/auth/register', methods=['POST'])
def register():
    """Create an account and return a bearer token for it."""
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not username or not EMAIL_RE.match(email):
        return jsonify({'message': 'Username and a valid email are required'}), 400
    if len(password) < MIN_PASSWORD:
        return jsonify({'message': f'Password must be at least {MIN_PASSWORD} characters'}), 400
    if db.find_user_by_email(email) or db.find_user_by_username(username):
        return jsonify({'message': 'User already exists'}), 409

    try:
        user = db.create_user(username, email, generate_password_hash(password))
    except DuplicateKeyError:
        # Lost a race with a concurrent registration.
        return jsonify({'message': 'User already exists'}), 409
    return jsonify(_session_payload(user)), 201


@auth_bp.route('/api/auth/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        return jsonify({'message': 'Email and password are required'}), 400

    user = db.find_user_by_email(email)
    if not user or not check_password_hash(user.get('passwordHash', ''), password):
        return jsonify({'message': 'Invalid email or password'}), 401
    return jsonify(_session_payload(user))


@auth_bp.route('/api/auth/me')
@jwt_required()
def me():
    """Profile of the token holder."""
    user = db.find_user(get_jwt_identity())
    if not user:
        return jsonify({'message': 'User not found'}), 404
    return jsonify({'user': db.public_user(user)})
