"""In-process dispatch of synthesized requests through an ASGI application."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


def is_redirect(response: Response) -> bool:
    return response.status_code in REDIRECT_STATUSES and "location" in response.headers


def target_url(response: Response) -> str:
    return response.headers["location"]


def build_request(
    url: str,
    headers: Mapping[str, str],
    base: Optional[Request] = None,
    method: str = "GET",
) -> Request:
    """
    Build a body-less Request for ``url``.

    Relative URLs are resolved against ``base``; scheme, server, client and
    root path are inherited from it so the sub-request looks like it came in
    on the same connection.
    """
    parts = urlsplit(url)
    base_scope: Dict[str, Any] = dict(base.scope) if base is not None else {}

    scheme = parts.scheme or base_scope.get("scheme", "http")
    server = base_scope.get("server")
    if parts.hostname:
        default_port = 443 if scheme == "https" else 80
        server = (parts.hostname, parts.port or default_port)

    raw_headers: List[Tuple[bytes, bytes]] = [
        (name.lower().encode("latin-1"), str(value).encode("latin-1"))
        for name, value in headers.items()
        if name.lower() != "host"
    ]
    if parts.netloc:
        raw_headers.append((b"host", parts.netloc.encode("latin-1")))
    elif base is not None and "host" in base.headers:
        raw_headers.append((b"host", base.headers["host"].encode("latin-1")))

    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": base_scope.get("http_version", "1.1"),
        "method": method,
        "scheme": scheme,
        "path": parts.path or "/",
        "raw_path": (parts.path or "/").encode("latin-1"),
        "query_string": parts.query.encode("latin-1"),
        "root_path": base_scope.get("root_path", ""),
        "headers": raw_headers,
        "server": server,
        "client": base_scope.get("client"),
    }
    # Lifespan state is shared with the sub-request; a copy keeps its writes local
    scope["state"] = dict(base_scope.get("state", {}))
    # Routing needs the application to resolve url_for() in the sub-request
    if "app" in base_scope:
        scope["app"] = base_scope["app"]

    async def receive() -> Message:
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(scope, receive=receive)


class ASGIKernel:
    """Runs requests through a whole ASGI application and captures the response."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def handle(self, request: Request) -> Response:
        """
        Dispatch ``request`` and return what the application sent.

        Exceptions raised by the application are not caught here.
        """
        status = 500
        raw_headers: List[Tuple[bytes, bytes]] = []
        body = bytearray()

        async def receive() -> Message:
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message: Message) -> None:
            nonlocal status, raw_headers
            msg_type = message["type"]
            if msg_type == "http.response.start":
                status = message.get("status", 200)
                raw_headers = list(message.get("headers", []))
            elif msg_type == "http.response.body":
                body.extend(message.get("body", b""))

        scope = dict(request.scope)
        # Routing results of the outer dispatch must not leak into the sub-request
        scope.pop("endpoint", None)
        scope.pop("path_params", None)
        scope.pop("route", None)

        logger.debug("Dispatching %s %s", scope["method"], scope["path"])
        await self.app(scope, receive, send)

        response = Response(content=bytes(body), status_code=status)
        response.raw_headers = raw_headers
        return response
