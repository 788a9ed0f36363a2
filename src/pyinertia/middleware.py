import inspect
import logging
from typing import Any, Callable, Optional

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pyinertia import headers
from pyinertia.context import current_request
from pyinertia.factory import PageFactory

logger = logging.getLogger(__name__)

ShareHook = Callable[[Request], Any]


class InertiaMiddleware:
    """
    Per-request lifecycle for the protocol.

    Binds the current request, starts each request with fresh shared props,
    answers stale-asset visits with a 409 location response and turns 302
    redirects after PUT/PATCH/DELETE into 303 so the client follows with GET.
    """

    def __init__(
        self,
        app: ASGIApp,
        factory: Optional[PageFactory] = None,
        share: Optional[ShareHook] = None,
    ) -> None:
        self.app = app
        if factory is None:
            from pyinertia import inertia as factory
        self.factory = factory
        self.share = share

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        request_token = current_request.set(request)
        shared_token = self.factory.flush_shared()
        try:
            if self.share is not None:
                shared = self.share(request)
                if inspect.isawaitable(shared):
                    shared = await shared
                if shared:
                    self.factory.share(shared)

            if self._version_mismatch(request):
                logger.debug("Asset version mismatch on %s", request.url.path)
                response = self.factory.location(str(request.url), request)
                await response(scope, receive, send)
                return

            await self.app(scope, receive, self._wrap_send(request, send))
        finally:
            self.factory.restore_shared(shared_token)
            current_request.reset(request_token)

    def _version_mismatch(self, request: Request) -> bool:
        if request.method != "GET" or not headers.is_inertia_request(request):
            return False
        client_version = request.headers.get(headers.VERSION, "")
        return client_version != self.factory.get_version()

    def _wrap_send(self, request: Request, send: Send) -> Send:
        if request.method not in ("PUT", "PATCH", "DELETE") or not headers.is_inertia_request(
            request
        ):
            return send

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start" and message.get("status") == 302:
                message = dict(message)
                message["status"] = 303
            await send(message)

        return send_wrapper

    def __getattr__(self, name: str) -> Any:
        return getattr(self.app, name)
