"""Synthetic 500 handlers mounted for domains that failed to bind."""

from __future__ import annotations

from html import escape

from starlette.types import ASGIApp, Receive, Scope, Send

from .errors import GENERIC_MESSAGE, error_response


def fallback_handler(body_html: str) -> ASGIApp:
    async def fallback(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket":
            await send({"type": "websocket.close", "code": 1011})
            return
        response = error_response(status_code=500, body_html=body_html)
        await response(scope, receive, send)

    return fallback


def missing_module_handler(path: str, *, debug: bool) -> ASGIApp:
    if not debug:
        return fallback_handler(GENERIC_MESSAGE)
    return fallback_handler(
        f"The following module &laquo; <b>{escape(path)}</b> &raquo; "
        "could not be found."
    )


def missing_export_handler(export: str, path: str, *, debug: bool) -> ASGIApp:
    if not debug:
        return fallback_handler(GENERIC_MESSAGE)
    return fallback_handler(
        f"Your module <b>{escape(path)}</b> for this virtual host should end "
        f"with <b><code>{escape(export)} = </code></b> "
        "<i>&lt;your ASGI application&gt;</i>."
    )


def load_error_handler(path: str, cause: BaseException, *, debug: bool) -> ASGIApp:
    if not debug:
        return fallback_handler(GENERIC_MESSAGE)
    return fallback_handler(
        f"The module <b>{escape(path)}</b> for this virtual host raised "
        f"<code>{escape(type(cause).__name__)}</code> while loading."
    )
