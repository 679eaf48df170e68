"""
app.py — Main entry point for the dashboard application.

Cookies are read from the HTTP request (st.context.cookies) and written through
an extra-streamlit-components CookieManager, whose iframe is allowed to set
cookies on the main page. After a set/delete the script stops so the iframe can
run; the component then triggers the next rerun.

Session flow:
  - Login     → verify creds → create server-side session → token in
                session_state → cookie written → rerun → dashboard shown
  - Reload    → cookie token → StoreSessionProvider resolves the session
                → session_state restored
  - Logout    → destroy server session → clear session_state → cookie
                deleted → rerun → login form shown

Run with:
    streamlit run app.py
"""

import asyncio
import logging
import logging.config
from datetime import datetime, timedelta, timezone

import extra_streamlit_components as stx
import streamlit as st

from auth import (
    COOKIE_NAME,
    SESSION_DURATION_HOURS,
    SESSION_ERROR_MESSAGE,
    RequestContext,
    SessionLookupError,
    StoreSessionProvider,
    create_session,
    destroy_session,
    get_display_name,
    verify_user,
)

# ---------------------------------------------------------------------------
# Logging setup — configured once at import time
# ---------------------------------------------------------------------------

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "INFO", "handlers": ["console"]},
}

logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

# One CookieManager instance reused across reruns.
cookie_manager = stx.CookieManager(key="cm_singleton")


def _init_session_state() -> None:
    """Set the auth keys of st.session_state to their signed-out defaults."""
    for key, value in {"authenticated": False, "username": None, "token": None}.items():
        if key not in st.session_state:
            st.session_state[key] = value


def _sign_in(username: str, token: str) -> None:
    st.session_state.authenticated = True
    st.session_state.username = username
    st.session_state.token = token


def _restore_session() -> None:
    """Restore session_state from the request's session token, if still valid.

    A failing session store stops the script with a generic error instead of
    the login form.
    """
    request = RequestContext.from_streamlit()
    if not request.session_token:
        logger.info("Auth gate: no session cookie")
        return

    try:
        session = asyncio.run(StoreSessionProvider().auth(request))
    except SessionLookupError:
        logger.exception("Auth gate: session lookup error")
        st.error(SESSION_ERROR_MESSAGE)
        st.stop()

    if session is None or session.user is None:
        logger.warning(
            "Session token present but invalid/expired (prefix: %s) — ignoring",
            request.session_token[:8],
        )
        return

    logger.info(
        "Session restored for user '%s' (token prefix: %s)",
        session.user.username,
        session.token[:8],
    )
    _sign_in(session.user.username, session.token)


def _show_login_form() -> None:
    """Render the login form and sign the user in on valid credentials.

    On success the session token goes into session_state before the cookie
    write, so the rerun triggered by the CookieManager already sees an
    authenticated tab.
    """
    _, col, _ = st.columns([1, 1.2, 1])
    with col:
        st.markdown("## 🔐 Sign in")
        st.markdown("---")

        with st.form("login_form", clear_on_submit=False):
            username = st.text_input("Username", placeholder="Enter username")
            password = st.text_input("Password", type="password", placeholder="Enter password")
            submitted = st.form_submit_button("Login", use_container_width=True)

        st.markdown(
            "<br><small style='color:grey'>Test accounts: "
            "<b>test1 / test1</b> &nbsp;·&nbsp; <b>test2 / test2</b></small>",
            unsafe_allow_html=True,
        )

        if not submitted:
            return
        if not username or not password:
            logger.warning("Login attempt with empty username or password")
            st.error("Please enter both username and password.")
            return

        if not verify_user(username, password):
            logger.warning("Login FAILED for username '%s' — bad credentials", username)
            st.error("Invalid username or password.")
            return

        token = create_session(username)
        logger.info("Login SUCCESS for '%s' — token prefix: %s", username, token[:8])
        _sign_in(username, token)
        cookie_manager.set(
            COOKIE_NAME,
            token,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=SESSION_DURATION_HOURS),
        )
        st.stop()


def _logout() -> None:
    """Destroy the server-side session, clear session_state and the cookie."""
    token = st.session_state.get("token")
    if token:
        destroy_session(token)
    logger.info("Logout: user '%s' signed out", st.session_state.get("username"))

    st.session_state.authenticated = False
    st.session_state.username = None
    st.session_state.token = None
    cookie_manager.delete(COOKIE_NAME)
    st.stop()


_init_session_state()

if not st.session_state.authenticated:
    _restore_session()
    if not st.session_state.authenticated:
        _show_login_form()
        st.stop()

_PAGES = [st.Page("pages/dashboard.py", title="Dashboard", icon="📊", default=True)]
pg = st.navigation(_PAGES, position="hidden")

with st.sidebar:
    name = get_display_name(st.session_state.username) or st.session_state.username
    st.markdown(f"### Signed in as **{name}**")
    st.markdown("---")
    for page in _PAGES:
        st.page_link(page, label=page.title, icon=page.icon)
    st.markdown("---")
    if st.button("Logout", use_container_width=True):
        _logout()

pg.run()
