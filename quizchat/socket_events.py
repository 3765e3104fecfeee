"""Socket.IO event handlers for the message relay.

Client contract:
  io(url, { auth: { token } })                 -> refused without a valid token
  socket.emit('join', userId?)                  -> joins the caller's own room
  socket.emit('sendMessage', { receiverId, ...payload })
  socket.on('receiveMessage', data)             -> data carries senderId
  socket.on('joinRejected', { message })        -> join named another user

Room membership is bound to the identity proven by the handshake token, never
to a client-supplied id.
"""
import logging

from flask import request
from flask_socketio import ConnectionRefusedError, emit

from .extensions import relay, socketio
from .security import identity_from_token

log = logging.getLogger(__name__)


def _handshake_token(auth):
    if isinstance(auth, dict) and auth.get("token"):
        return auth["token"]
    return request.args.get("token")


@socketio.on("connect")
def handle_connect(auth=None):
    user_id = identity_from_token(_handshake_token(auth))
    if not user_id:
        log.info("Refused socket connection %s: missing or invalid token", request.sid)
        raise ConnectionRefusedError("unauthorized")
    relay.connect(request.sid, user_id)
    log.info("New client connected: sid=%s user=%s", request.sid, user_id)


@socketio.on("join")
def handle_join(user_id=None):
    principal = relay.registry.principal(request.sid)
    if principal is None:
        return
    if user_id not in (None, "") and str(user_id) != principal:
        log.warning("Connection %s (user %s) tried to join room %s", request.sid, principal, user_id)
        emit("joinRejected", {"message": "Cannot join another user's room"})
        return
    if relay.join(request.sid, principal):
        log.info("User %s joined their room", principal)


@socketio.on("sendMessage")
def handle_send_message(data):
    principal = relay.registry.principal(request.sid)
    if principal is None:
        return
    if not isinstance(data, dict) or data.get("receiverId") in (None, ""):
        log.warning("Dropped malformed message from %s: %r", principal, data)
        return
    payload = dict(data)
    payload["senderId"] = principal
    relay.deliver(str(data["receiverId"]), payload)


@socketio.on("disconnect")
def handle_disconnect(reason=None):
    rooms = relay.disconnect(request.sid)
    log.info("Client disconnected: sid=%s rooms=%s reason=%s", request.sid, rooms, reason)


@socketio.on_error_default
def handle_socket_error(e):
    # Scoped to the offending connection; other sockets and requests keep running.
    log.exception(f"Socket event error on {request.sid}: {e}")
