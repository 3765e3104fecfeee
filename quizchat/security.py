"""Token helpers shared by the auth routes and the Socket.IO handshake."""
from datetime import timedelta
import logging

from flask import current_app
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

log = logging.getLogger(__name__)


def issue_token(user_id):
    hours = current_app.config.get("JWT_EXPIRES_HOURS", 24)
    return create_access_token(identity=str(user_id), expires_delta=timedelta(hours=hours))


def identity_from_token(token):
    """Return the user id a token was issued for, or None if it does not verify."""
    if not token or not isinstance(token, str):
        return None
    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        log.info(f"Rejected token: {e}")
        return None
    return claims.get(current_app.config.get("JWT_IDENTITY_CLAIM", "sub"))
