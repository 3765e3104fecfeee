import logging
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from quizchat import db as dbmod
from quizchat.db import (
    DatabaseConnectionError,
    DatabaseConnector,
    DatabaseUnavailableError,
    connection_options,
    expose_id,
)


def fake_factory(calls, ping_error=None):
    def factory(uri, **kwargs):
        client = MagicMock(name="MongoClient")
        client.get_default_database.return_value.name = "quizchat"
        if ping_error is not None:
            client.admin.command.side_effect = ping_error
        calls.append((uri, kwargs, client))
        return client
    return factory


def test_options_are_time_and_pool_bounded():
    opts = connection_options(production=False)
    assert opts["connectTimeoutMS"] == 30000
    assert opts["socketTimeoutMS"] == 30000
    assert opts["serverSelectionTimeoutMS"] == 30000
    assert opts["maxPoolSize"] == 10
    assert opts["minPoolSize"] == 1
    assert opts["maxIdleTimeMS"] == 30000
    assert opts["w"] == "majority"
    assert "tls" not in opts


def test_production_forces_tls():
    assert connection_options(production=True)["tls"] is True


def test_connect_pings_and_keeps_a_single_pool():
    calls = []
    connector = DatabaseConnector(client_factory=fake_factory(calls))

    first = connector.connect("mongodb://db.example/quizchat")
    second = connector.connect("mongodb://db.example/quizchat")

    assert first is second
    assert len(calls) == 1
    uri, kwargs, client = calls[0]
    client.admin.command.assert_called_once_with("ping")
    assert kwargs["event_listeners"]
    assert connector.status == "connected"
    assert connector.database is client.get_default_database.return_value


def test_missing_uri_is_fatal():
    connector = DatabaseConnector(client_factory=fake_factory([]))
    with pytest.raises(DatabaseConnectionError):
        connector.connect(None)


def test_unreachable_server_is_fatal_and_releases_client():
    calls = []
    connector = DatabaseConnector(
        client_factory=fake_factory(calls, ping_error=ServerSelectionTimeoutError("no servers"))
    )
    with pytest.raises(DatabaseConnectionError):
        connector.connect("mongodb://db.example")
    calls[0][2].close.assert_called_once()
    assert not connector.connected
    with pytest.raises(DatabaseUnavailableError):
        connector.database


def test_close_releases_pool_once():
    calls = []
    connector = DatabaseConnector(client_factory=fake_factory(calls))
    connector.connect("mongodb://db.example")

    assert connector.close("test") is True
    assert connector.close("test") is False
    calls[0][2].close.assert_called_once()
    assert connector.status == "disconnected"


def _topology_event(was_up, is_up):
    return SimpleNamespace(
        previous_description=SimpleNamespace(has_readable_server=lambda: was_up),
        new_description=SimpleNamespace(has_readable_server=lambda: is_up),
    )


def test_topology_listener_tracks_outages(caplog):
    caplog.set_level(logging.INFO, logger="quizchat")
    connector = DatabaseConnector(client_factory=fake_factory([]))
    listener = dbmod._TopologyLogger(connector)

    listener.description_changed(_topology_event(False, True))
    assert connector.status == "connected"
    listener.description_changed(_topology_event(True, False))
    assert connector.status == "disconnected"
    listener.description_changed(_topology_event(False, True))
    assert connector.status == "connected"

    assert "MongoDB disconnected" in caplog.text
    assert caplog.text.count("MongoDB reconnected") == 1


def test_heartbeat_failures_logged_once_per_outage(caplog):
    listener = dbmod._HeartbeatLogger()
    failure = SimpleNamespace(connection_id=("db.example", 27017), reply=OSError("refused"))

    listener.failed(failure)
    listener.failed(failure)
    listener.succeeded(SimpleNamespace(connection_id=("db.example", 27017)))
    listener.failed(failure)

    assert caplog.text.count("MongoDB connection error") == 2


def test_expose_id_makes_documents_json_friendly():
    oid, ref = ObjectId(), ObjectId()
    when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    out = expose_id({"_id": oid, "quiz": ref, "createdAt": when, "score": 3})
    assert out == {"id": str(oid), "quiz": str(ref), "createdAt": when.isoformat(), "score": 3}
    assert expose_id(None) is None


def test_public_user_strips_password_hash():
    user = dbmod.public_user({"_id": ObjectId(), "username": "a", "passwordHash": "x"})
    assert "passwordHash" not in user


def test_helpers_refuse_malformed_ids():
    assert dbmod.to_object_id("not-an-id") is None
    assert dbmod.find_user("not-an-id") is None
    assert dbmod.get_quiz(None) is None
