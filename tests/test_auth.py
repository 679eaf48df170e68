"""Tests for the authentication collaborator."""

import asyncio
from datetime import datetime, timedelta

import pytest

import auth
from auth import (
    COOKIE_NAME,
    NullSessionProvider,
    RequestContext,
    SessionLookupError,
    StaticSessionProvider,
    StoreSessionProvider,
    create_session,
    destroy_session,
    get_display_name,
    validate_session,
    verify_user,
)


def _resolve(request):
    return asyncio.run(StoreSessionProvider().auth(request))


def test_verify_user():
    assert verify_user("test1", "test1")
    assert not verify_user("test1", "wrong")
    assert not verify_user("nobody", "test1")


def test_get_display_name():
    assert get_display_name("test2") == "Test Two"
    assert get_display_name("nobody") is None


def test_session_lifecycle():
    token = create_session("test1")

    assert validate_session(token) == "test1"

    destroy_session(token)

    assert validate_session(token) is None


def test_validate_session_rejects_empty_and_unknown():
    assert validate_session("") is None
    assert validate_session("not-a-token") is None


def test_expired_session_is_removed():
    token = create_session("test1")
    auth._SESSION_STORE[token]["expires_at"] = datetime.now() - timedelta(seconds=1)

    assert validate_session(token) is None
    assert token not in auth._SESSION_STORE


def test_store_provider_resolves_cookie():
    token = create_session("test1")

    session = _resolve(RequestContext(cookies={COOKIE_NAME: token}))

    assert session.user.username == "test1"
    assert session.user.name == "Test One"
    assert session.token == token


def test_store_provider_prefers_state_token():
    cookie_token = create_session("test1")
    state_token = create_session("test2")

    session = _resolve(RequestContext(cookies={COOKIE_NAME: cookie_token}, token=state_token))

    assert session.user.username == "test2"


def test_store_provider_without_token():
    assert _resolve(RequestContext()) is None
    assert _resolve(RequestContext(cookies={"other": "x"})) is None


def test_store_provider_with_expired_token():
    token = create_session("test1")
    auth._SESSION_STORE[token]["expires_at"] = datetime.now() - timedelta(hours=1)

    assert _resolve(RequestContext(cookies={COOKIE_NAME: token})) is None


def test_store_provider_wraps_store_failure(monkeypatch):
    def broken_lookup(token):
        raise OSError("store offline")

    monkeypatch.setattr(auth, "_lookup", broken_lookup)

    with pytest.raises(SessionLookupError) as excinfo:
        _resolve(RequestContext(token="abcdefgh-1234"))

    assert isinstance(excinfo.value.__cause__, OSError)


def test_stub_providers(alice_session, request_context):
    assert asyncio.run(NullSessionProvider().auth(request_context)) is None
    assert asyncio.run(StaticSessionProvider(alice_session).auth(request_context)) is alice_session


def test_validate_session_matches_store_provider():
    token = create_session("test2")

    session = _resolve(RequestContext(token=token))

    assert validate_session(token) == session.user.username == "test2"


def test_session_token_falls_back_to_cookie():
    assert RequestContext(cookies={COOKIE_NAME: "from-cookie"}).session_token == "from-cookie"
    assert RequestContext(cookies={COOKIE_NAME: "c"}, token="t").session_token == "t"
    assert RequestContext().session_token is None
