"""
auth.py — Authentication collaborator for the dashboard.

Owns the server-side session store and resolves the session for an incoming
request. Pages never touch the store directly: they receive a
`SessionProvider` and await `provider.auth(request)`, which yields a
`Session` snapshot or None when nobody is signed in.

The users and sessions tables are in-memory dicts living at module level, so
they persist across Streamlit reruns on the same server process.

Typical usage:
    from auth import RequestContext, StoreSessionProvider

    session = await StoreSessionProvider().auth(RequestContext.from_streamlit())
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

SESSION_DURATION_HOURS = 24
COOKIE_NAME = "auth_session"
SESSION_ERROR_MESSAGE = "We couldn't load your session. Please try again later."

# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------

_USERS: dict[str, dict] = {
    "test1": {
        "password_hash": hashlib.sha256("test1".encode()).hexdigest(),
        "name": "Test One",
    },
    "test2": {
        "password_hash": hashlib.sha256("test2".encode()).hexdigest(),
        "name": "Test Two",
    },
}
"""
Users table.
Schema: { username: {"password_hash": sha256 hex, "name": display name} }
"""

_SESSION_STORE: dict[str, dict] = {}
"""
Sessions table.
Schema: {
    token (str): {
        "username":   str,
        "created_at": datetime,
        "expires_at": datetime,
    }
}
"""


class SessionLookupError(Exception):
    """The session store could not be queried for the current request."""


# ---------------------------------------------------------------------------
# Session snapshot types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class User:
    """Identity attributes of a signed-in user. Every field may be absent."""

    username: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class Session:
    """Read-only snapshot of a login, valid for the duration of one render."""

    user: Optional[User] = None
    token: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class RequestContext:
    """Everything a provider may inspect to resolve the current session.

    Attributes:
        cookies (Mapping[str, str]): Cookies sent with the HTTP request.
        token (str | None): Token already held by this tab's session state.
            A fresh login sets it before the browser cookie round-trips, so it
            takes precedence over the cookie.
    """

    cookies: Mapping[str, str] = field(default_factory=dict)
    token: Optional[str] = None

    @classmethod
    def from_streamlit(cls) -> "RequestContext":
        """Build a context from the running Streamlit script's request."""
        import streamlit as st

        return cls(
            cookies=dict(st.context.cookies),
            token=st.session_state.get("token"),
        )

    @property
    def session_token(self) -> Optional[str]:
        """The token identifying this request's session.

        Returns:
            Optional[str]: The session-state token if set, otherwise the
                `COOKIE_NAME` cookie, or None when neither is present.
        """
        return self.token or self.cookies.get(COOKIE_NAME)


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def verify_user(username: str, password: str) -> bool:
    """Check whether username/password credentials are valid.

    Args:
        username (str): The username to look up.
        password (str): The plain-text password to verify.

    Returns:
        bool: True if credentials match, False otherwise.
    """
    record = _USERS.get(username)
    if record is None:
        return False
    return record["password_hash"] == hashlib.sha256(password.encode()).hexdigest()


def get_display_name(username: str) -> Optional[str]:
    """Return the display name registered for `username`, if any."""
    record = _USERS.get(username)
    if record is None:
        return None
    return record.get("name")


def create_session(username: str) -> str:
    """Create a new server-side session for an authenticated user.

    Args:
        username (str): The authenticated user's username.

    Returns:
        str: A UUID4 session token string, to be persisted as a cookie.
    """
    token = str(uuid.uuid4())
    now = datetime.now()
    _SESSION_STORE[token] = {
        "username": username,
        "created_at": now,
        "expires_at": now + timedelta(hours=SESSION_DURATION_HOURS),
    }
    logger.info("Session created for user '%s' (token prefix: %s)", username, token[:8])
    return token


def _lookup(token: str) -> Optional[dict]:
    """Return the live session record for `token`, dropping it if expired."""
    session = _SESSION_STORE.get(token)
    if session is None:
        return None

    if datetime.now() > session["expires_at"]:
        logger.info("Session expired for token prefix %s — removing", token[:8])
        del _SESSION_STORE[token]
        return None

    return session


def validate_session(token: str) -> Optional[str]:
    """Validate a session token and return the owning username if valid.

    Public helper for callers that only need the username; the dashboard
    resolves full sessions through `StoreSessionProvider`.

    Args:
        token (str): The session token read from the browser cookie.

    Returns:
        Optional[str]: The username associated with the token, or None if the
            token is missing, expired, or otherwise invalid.
    """
    if not token:
        return None
    session = _lookup(token)
    return session["username"] if session else None


def destroy_session(token: str) -> None:
    """Remove a session from the server-side store (logout)."""
    removed = _SESSION_STORE.pop(token, None)
    if removed:
        logger.info(
            "Session destroyed for user '%s' (token prefix: %s)",
            removed["username"],
            token[:8],
        )


# ---------------------------------------------------------------------------
# Session providers
# ---------------------------------------------------------------------------


class SessionProvider(Protocol):
    """Resolves the current session for a request."""

    async def auth(self, request: RequestContext) -> Optional[Session]:
        ...


class NullSessionProvider:
    """Provider for which nobody is ever signed in."""

    async def auth(self, request: RequestContext) -> Optional[Session]:
        return None


class StaticSessionProvider:
    """Provider that hands out the same session snapshot for every request."""

    def __init__(self, session: Optional[Session]):
        self.session = session

    async def auth(self, request: RequestContext) -> Optional[Session]:
        return self.session


class StoreSessionProvider:
    """Provider backed by the in-memory session store."""

    async def auth(self, request: RequestContext) -> Optional[Session]:
        """Resolve the session owning the request's token.

        Args:
            request (RequestContext): The incoming request.

        Returns:
            Optional[Session]: The session, or None when the request carries no
                token or the token is unknown or expired.

        Raises:
            SessionLookupError: If the session store fails.
        """
        token = request.session_token
        if not token:
            return None

        try:
            record = _lookup(token)
        except Exception as exc:
            raise SessionLookupError(
                f"Session lookup failed for token prefix {token[:8]}"
            ) from exc

        if record is None:
            logger.debug("No live session for token prefix %s", token[:8])
            return None

        username = record["username"]
        return Session(
            user=User(username=username, name=get_display_name(username)),
            token=token,
            expires_at=record["expires_at"],
        )
