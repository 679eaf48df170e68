"""
pages/dashboard.py — Dashboard page of the application.

Resolves the signed-in user's session through the store-backed provider and
writes the rendered dashboard as HTML. A failing session store is reported
here with a generic error; the render itself never swallows it.
"""

import asyncio
import logging

import streamlit as st

from auth import SESSION_ERROR_MESSAGE, RequestContext, SessionLookupError, StoreSessionProvider
from dashboard import STYLESHEET, render, to_markup

logger = logging.getLogger(__name__)


def show() -> None:
    """Render the Dashboard page content.

    Returns:
        None
    """
    request = RequestContext.from_streamlit()
    try:
        tree = asyncio.run(render(request, StoreSessionProvider()))
    except SessionLookupError:
        logger.exception("Dashboard render failed: session lookup error")
        st.error(SESSION_ERROR_MESSAGE)
        return

    st.markdown(STYLESHEET, unsafe_allow_html=True)
    st.markdown(to_markup(tree), unsafe_allow_html=True)


show()
