"""
dashboard.py — The authenticated dashboard page.

`render` produces a framework-agnostic view tree; `to_markup` serialises it to
HTML for the hosting page to write out. The tree mirrors the markup:

    div.max-w-screen-xl.mx-auto.py-6.p-4.bg-white
        h1.text-2xl  "Dashboard Page"
        h2.text-xl   "Welcome Back: " span.font-bold(<user name>)
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from auth import RequestContext, Session, SessionProvider

HEADING = "Dashboard Page"
WELCOME_PREFIX = "Welcome Back: "

# Utility classes referenced by the view tree, for hosts without a CSS framework.
STYLESHEET = """
<style>
.max-w-screen-xl { max-width: 1280px; }
.mx-auto { margin-left: auto; margin-right: auto; }
.py-6 { padding-top: 1.5rem; padding-bottom: 1.5rem; }
.p-4 { padding: 1rem; }
.bg-white { background-color: #ffffff; }
.text-2xl { font-size: 1.5rem; line-height: 2rem; }
.text-xl { font-size: 1.25rem; line-height: 1.75rem; }
.font-bold { font-weight: 700; }
</style>
"""


@dataclass(frozen=True)
class Element:
    """A node in the view tree. Children are elements or text leaves."""

    tag: str
    class_name: str = ""
    children: Tuple[Union["Element", str], ...] = ()


def display_name(session: Optional[Session]) -> str:
    """Return the session's user name, or "" if any link in the chain is absent."""
    if session is None or session.user is None:
        return ""
    return session.user.name or ""


def build_view(session: Optional[Session]) -> Element:
    """Build the dashboard view tree for a session snapshot.

    Args:
        session (Session | None): The resolved session, possibly absent.

    Returns:
        Element: The root container of the view tree.
    """
    name = display_name(session)
    return Element(
        "div",
        "max-w-screen-xl mx-auto py-6 p-4 bg-white",
        (
            Element("h1", "text-2xl", (HEADING,)),
            Element(
                "h2",
                "text-xl",
                (
                    WELCOME_PREFIX,
                    Element("span", "font-bold", (name,) if name else ()),
                ),
            ),
        ),
    )


async def render(request: RequestContext, provider: SessionProvider) -> Element:
    """Render the dashboard for the user signed in on `request`.

    The only suspension point is the session lookup. Errors raised by the
    provider propagate to the caller; a missing session, user or name renders
    an empty name slot instead.

    Args:
        request (RequestContext): The incoming request.
        provider (SessionProvider): Resolves the request's session.

    Returns:
        Element: The root of the view tree.
    """
    session = await provider.auth(request)
    return build_view(session)


def text_content(node: Union[Element, str]) -> str:
    """Concatenate the text leaves of a view subtree, in document order."""
    if isinstance(node, str):
        return node
    return "".join(text_content(child) for child in node.children)


def to_markup(node: Union[Element, str]) -> str:
    """Serialise a view tree to HTML, escaping all text."""
    if isinstance(node, str):
        return html.escape(node)
    attrs = f' class="{html.escape(node.class_name)}"' if node.class_name else ""
    inner = "".join(to_markup(child) for child in node.children)
    return f"<{node.tag}{attrs}>{inner}</{node.tag}>"
