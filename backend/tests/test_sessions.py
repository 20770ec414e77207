from __future__ import annotations

from datetime import timedelta

import pytest
from starlette.requests import Request
from starlette.responses import Response

from studyprep.core.clock import utcnow
from studyprep.core.sessions import DatabaseSessionStore, MemorySessionStore, SessionManager
from studyprep.models import HttpSession


COOKIE = "studyprep.sid"


def request_with_cookie(value: str | None) -> Request:
    headers = []
    if value is not None:
        headers.append((b"cookie", f"{COOKIE}={value}".encode("latin-1")))
    return Request({"type": "http", "method": "GET", "path": "/", "query_string": b"", "headers": headers})


def cookie_value(response: Response) -> str:
    header = response.headers["set-cookie"]
    return header.split(";", 1)[0].split("=", 1)[1]


@pytest.fixture(params=["memory", "database"])
def store(request):
    if request.param == "memory":
        return MemorySessionStore()
    return DatabaseSessionStore(request.getfixturevalue("session_factory"))


def test_store_set_get_delete(store):
    store.set("sid-1", {"user_id": 3}, utcnow() + timedelta(minutes=5))

    assert store.get("sid-1") == {"user_id": 3}

    store.delete("sid-1")
    assert store.get("sid-1") is None


def test_store_drops_expired_entries(store):
    store.set("old", {"user_id": 1}, utcnow() - timedelta(seconds=1))

    assert store.get("old") is None


def test_memory_store_prunes_on_access():
    store = MemorySessionStore()
    store.set("old", {"user_id": 1}, utcnow() - timedelta(seconds=1))
    store.set("new", {"user_id": 2}, utcnow() + timedelta(minutes=1))

    store.get("new")

    assert len(store) == 1


def test_establish_sets_signed_http_only_cookie():
    manager = SessionManager(MemorySessionStore(), "session-secret")
    response = Response()

    sid = manager.establish(response, 42)

    header = response.headers["set-cookie"]
    assert header.startswith(f"{COOKIE}=")
    assert "httponly" in header.lower()
    assert "samesite=lax" in header.lower()
    assert "Max-Age=86400" in header
    value = cookie_value(response)
    assert value != sid
    assert value.startswith(sid)


def test_load_reads_back_the_user():
    manager = SessionManager(MemorySessionStore(), "session-secret")
    response = Response()
    manager.establish(response, 42)

    request = request_with_cookie(cookie_value(response))

    assert manager.load(request) == {"user_id": 42}
    assert manager.user_id(request) == 42


def test_missing_or_tampered_cookie_means_no_session():
    manager = SessionManager(MemorySessionStore(), "session-secret")
    response = Response()
    manager.establish(response, 42)
    value = cookie_value(response)

    assert manager.user_id(request_with_cookie(None)) is None
    assert manager.user_id(request_with_cookie(value[:-2] + "xx")) is None
    assert manager.user_id(request_with_cookie("forged")) is None


def test_cookie_signed_with_other_secret_is_rejected():
    store = MemorySessionStore()
    response = Response()
    SessionManager(store, "other-secret").establish(response, 42)

    manager = SessionManager(store, "session-secret")

    assert manager.user_id(request_with_cookie(cookie_value(response))) is None


def test_destroy_removes_server_side_entry():
    store = MemorySessionStore()
    manager = SessionManager(store, "session-secret")
    login = Response()
    sid = manager.establish(login, 42)
    request = request_with_cookie(cookie_value(login))

    logout = Response()
    manager.destroy(request, logout)

    assert store.get(sid) is None
    assert manager.user_id(request) is None
    assert logout.headers["set-cookie"].startswith(f"{COOKIE}=")


def test_establish_replaces_previous_session():
    store = MemorySessionStore()
    manager = SessionManager(store, "session-secret")
    first = Response()
    old_sid = manager.establish(first, 1)

    manager.establish(Response(), 2, request_with_cookie(cookie_value(first)))

    assert store.get(old_sid) is None


def test_database_store_sweeps_expired_rows_on_set(session_factory):
    store = DatabaseSessionStore(session_factory)
    store.set("stale", {"user_id": 1}, utcnow() - timedelta(seconds=1))

    store.set("fresh", {"user_id": 2}, utcnow() + timedelta(minutes=5))

    db = session_factory()
    try:
        assert [row.sid for row in db.query(HttpSession).all()] == ["fresh"]
    finally:
        db.close()
