from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from chatrelay.db import crud
from chatrelay.db.session import get_async_session
from chatrelay.main import fastapi_app


@pytest.fixture
def client(session_factory):
    async def override_session():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_async_session] = override_session
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


def _seed(session_factory):
    async def seed():
        async with session_factory() as session:
            await crud.add_participant(session, "r1", "alice")
            await crud.add_participant(session, "r1", "bob")
            await crud.create_message(session, "r1", "alice", "first")
            await crud.create_message(session, "r1", "bob", "second")
            await crud.create_message(session, "r2", "carol", "other room")

    asyncio.run(seed())


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_get_room(client, session_factory):
    _seed(session_factory)

    resp = client.get("/api/rooms/r1")
    assert resp.status_code == 200
    body = resp.json()
    assert body["roomId"] == "r1"
    assert body["participants"] == ["alice", "bob"]
    assert "createdAt" in body


def test_get_missing_room(client):
    resp = client.get("/api/rooms/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Room not found"}


def test_get_room_messages_ascending(client, session_factory):
    _seed(session_factory)

    resp = client.get("/api/rooms/r1/messages")
    assert resp.status_code == 200
    body = resp.json()
    assert [m["text"] for m in body] == ["first", "second"]
    assert set(body[0]) == {"id", "roomId", "sender", "text", "timestamp"}
    assert body[0]["timestamp"] <= body[1]["timestamp"]


def test_get_room_messages_empty_room(client):
    resp = client.get("/api/rooms/empty/messages")
    assert resp.status_code == 200
    assert resp.json() == []


def test_store_error_becomes_500(client, monkeypatch):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("store down"))

    monkeypatch.setattr(crud, "get_room", broken)
    resp = client.get("/api/rooms/r1")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error"}


def test_deleted_room_is_not_found(client, session_factory):
    async def join_and_leave():
        async with session_factory() as session:
            await crud.add_participant(session, "r1", "alice")
            await crud.remove_participant(session, "r1", "alice")

    asyncio.run(join_and_leave())
    assert client.get("/api/rooms/r1").status_code == 404


def test_store_error_on_messages_becomes_500(client, monkeypatch):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("store down"))

    monkeypatch.setattr(crud, "get_room_messages", broken)
    resp = client.get("/api/rooms/r1/messages")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error"}


def test_unwrapped_connection_failure_becomes_500(client, monkeypatch):
    async def refused(*args, **kwargs):
        raise ConnectionRefusedError("store down")

    monkeypatch.setattr(crud, "get_room", refused)
    resp = client.get("/api/rooms/r1")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error"}
