"""Test configuration and shared fixtures."""

import pytest

import auth
from auth import RequestContext, Session, User


@pytest.fixture(autouse=True)
def clean_session_store():
    """Start and finish every test with an empty session store."""
    auth._SESSION_STORE.clear()
    yield
    auth._SESSION_STORE.clear()


@pytest.fixture
def request_context():
    return RequestContext(cookies={})


@pytest.fixture
def alice_session():
    return Session(user=User(username="alice", name="Alice"), token="tok-alice")
