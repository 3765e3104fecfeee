"""MongoDB access: one pooled client per process plus thin collection helpers.

The connector is created at import (``connector``) and connected once by the
entrypoint before the server starts listening. Route groups never touch the
client directly; they call the helpers below, which resolve the database
through ``connector.database`` at call time.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient, monitoring
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

log = logging.getLogger(__name__)

USERS = "users"
MESSAGES = "messages"
QUIZZES = "quizzes"
PROGRESS = "progress"


class DatabaseConnectionError(RuntimeError):
    """The initial connection could not be established. Fatal at startup."""


class DatabaseUnavailableError(RuntimeError):
    """A request needed the database while no pool is open."""


def connection_options(production: bool) -> Dict[str, Any]:
    """Keyword options for MongoClient; every network wait is time-bounded."""
    options: Dict[str, Any] = {
        "server_api": ServerApi("1", strict=True, deprecation_errors=True),
        "retryWrites": True,
        "w": "majority",
        "connectTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "serverSelectionTimeoutMS": 30000,
        "heartbeatFrequencyMS": 1000,
        "maxPoolSize": 10,
        "minPoolSize": 1,
        "maxIdleTimeMS": 30000,
    }
    if production:
        options["tls"] = True
    return options


class _TopologyLogger(monitoring.TopologyListener):
    """Logs disconnect / reconnect transitions; never acts on them."""

    def __init__(self, connector: "DatabaseConnector"):
        self._connector = connector
        self._seen_up = False

    def opened(self, event):
        log.debug("MongoDB topology opened: %s", event.topology_id)

    def description_changed(self, event):
        was_up = event.previous_description.has_readable_server()
        is_up = event.new_description.has_readable_server()
        if is_up and not was_up:
            if self._seen_up:
                log.info("MongoDB reconnected")
            self._seen_up = True
            self._connector.status = "connected"
        elif was_up and not is_up:
            log.warning("MongoDB disconnected")
            self._connector.status = "disconnected"

    def closed(self, event):
        log.debug("MongoDB topology closed: %s", event.topology_id)


class _HeartbeatLogger(monitoring.ServerHeartbeatListener):
    """Logs the first failed heartbeat of each outage per server."""

    def __init__(self):
        self._failing = set()

    def started(self, event):
        pass

    def succeeded(self, event):
        self._failing.discard(event.connection_id)

    def failed(self, event):
        if event.connection_id in self._failing:
            return
        self._failing.add(event.connection_id)
        host, port = event.connection_id
        log.error("MongoDB connection error on %s:%s: %s", host, port, event.reply)


class DatabaseConnector:
    """Owns the single MongoClient of the process."""

    def __init__(self, client_factory=MongoClient):
        self._client_factory = client_factory
        self._client = None
        self._db = None
        self._lock = threading.Lock()
        self.status = "disconnected"

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def database(self):
        if self._db is None:
            raise DatabaseUnavailableError("MongoDB is not connected")
        return self._db

    def connect(self, uri: Optional[str], production: bool = False, db_name: str = "quizchat"):
        """Open the pool and verify it with a ping. Returns the existing client on repeat calls."""
        with self._lock:
            if self._client is not None:
                return self._client
            if not uri:
                raise DatabaseConnectionError("MONGODB_URI environment variable is not set")
            client = None
            try:
                client = self._client_factory(
                    uri,
                    event_listeners=[_TopologyLogger(self), _HeartbeatLogger()],
                    **connection_options(production),
                )
                client.admin.command("ping")
                database = client.get_default_database(default=db_name)
                ensure_indexes(database)
            except PyMongoError as exc:
                if client is not None:
                    client.close()
                self.status = "disconnected"
                raise DatabaseConnectionError(f"MongoDB connection error: {exc}") from exc
            self._client = client
            self._db = database
            self.status = "connected"
        log.info("Connected to MongoDB successfully (database=%s)", database.name)
        return client

    def close(self, reason: str = "shutdown") -> bool:
        """Release the pool. Returns False when nothing was open."""
        with self._lock:
            client, self._client, self._db = self._client, None, None
            self.status = "disconnected"
        if client is None:
            return False
        client.close()
        log.info("MongoDB connection closed (%s)", reason)
        return True


connector = DatabaseConnector()


def get_db():
    return connector.database


def ensure_indexes(database):
    database[USERS].create_index([("email", ASCENDING)], unique=True)
    database[USERS].create_index([("username", ASCENDING)], unique=True)
    database[USERS].create_index([("totalScore", DESCENDING)])
    database[MESSAGES].create_index(
        [("senderId", ASCENDING), ("receiverId", ASCENDING), ("createdAt", ASCENDING)]
    )
    database[PROGRESS].create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])


# ---- document helpers ------------------------------------------------------

def _now():
    return datetime.now(timezone.utc)


def to_object_id(value) -> Optional[ObjectId]:
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def expose_id(doc: Optional[dict]) -> Optional[dict]:
    """Return a JSON-friendly copy: ``_id`` becomes ``id``, datetimes become ISO strings."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key == "_id":
            out["id"] = str(value)
        elif isinstance(value, ObjectId):
            out[key] = str(value)
        elif isinstance(value, datetime):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


def public_user(doc: Optional[dict]) -> Optional[dict]:
    user = expose_id(doc)
    if user is not None:
        user.pop("passwordHash", None)
    return user


# ---- users -----------------------------------------------------------------

def create_user(username: str, email: str, password_hash: str) -> dict:
    doc = {
        "username": username,
        "email": email.lower(),
        "passwordHash": password_hash,
        "totalScore": 0,
        "createdAt": _now(),
    }
    result = get_db()[USERS].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def find_user_by_email(email: str) -> Optional[dict]:
    return get_db()[USERS].find_one({"email": (email or "").lower()})


def find_user_by_username(username: str) -> Optional[dict]:
    return get_db()[USERS].find_one({"username": username})


def find_user(user_id) -> Optional[dict]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return get_db()[USERS].find_one({"_id": oid})


def add_score(user_id, points: int) -> bool:
    oid = to_object_id(user_id)
    if oid is None:
        return False
    result = get_db()[USERS].update_one({"_id": oid}, {"$inc": {"totalScore": points}})
    return result.matched_count > 0


def top_users(limit: int) -> List[dict]:
    cursor = (
        get_db()[USERS]
        .find({}, {"passwordHash": 0, "email": 0})
        .sort([("totalScore", DESCENDING), ("username", ASCENDING)])
        .limit(limit)
    )
    return list(cursor)


# ---- chat history ----------------------------------------------------------

def insert_chat_message(sender_id: str, receiver_id: str, content: str) -> dict:
    doc = {
        "senderId": sender_id,
        "receiverId": receiver_id,
        "content": content,
        "createdAt": _now(),
    }
    result = get_db()[MESSAGES].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def fetch_conversation(user_a: str, user_b: str, limit: int) -> List[dict]:
    """Most recent ``limit`` messages between two users, oldest first."""
    cursor = (
        get_db()[MESSAGES]
        .find(
            {
                "$or": [
                    {"senderId": user_a, "receiverId": user_b},
                    {"senderId": user_b, "receiverId": user_a},
                ]
            }
        )
        .sort("createdAt", DESCENDING)
        .limit(limit)
    )
    messages = list(cursor)
    messages.reverse()
    return messages


# ---- quizzes ---------------------------------------------------------------

def list_quizzes() -> List[dict]:
    cursor = get_db()[QUIZZES].find({}, {"questions.answer": 0}).sort("title", ASCENDING)
    return list(cursor)


def get_quiz(quiz_id) -> Optional[dict]:
    oid = to_object_id(quiz_id)
    if oid is None:
        return None
    return get_db()[QUIZZES].find_one({"_id": oid}, {"questions.answer": 0})


# ---- progress --------------------------------------------------------------

def insert_progress(user_id: str, quiz_id: str, score: int, total: int) -> dict:
    doc = {
        "userId": user_id,
        "quizId": quiz_id,
        "score": score,
        "total": total,
        "createdAt": _now(),
    }
    result = get_db()[PROGRESS].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def fetch_progress(user_id: str) -> List[dict]:
    cursor = get_db()[PROGRESS].find({"userId": user_id}).sort("createdAt", DESCENDING)
    return list(cursor)
