"""Page object and its conversion into a protocol response."""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import Receive, Scope, Send

from pyinertia import headers
from pyinertia.container import Container
from pyinertia.exceptions import KernelNotConfigured, TemplatesNotConfigured
from pyinertia.kernel import ASGIKernel, build_request, is_redirect, target_url
from pyinertia.props import decode_response, only, resolve_props, to_plain, without_deferred
from pyinertia.templating import RootViewRenderer

logger = logging.getLogger(__name__)


class Page:
    """
    One rendered screen: component name, props and response metadata.

    A Page is configured by the factory and the builder methods, then turned
    into a response once per request. It is also an ASGI application, so a
    Starlette endpoint may return it in place of a Response.
    """

    def __init__(
        self,
        component: str,
        props: Optional[Mapping[str, Any]] = None,
        root_view: str = "app",
        version: str = "",
        container: Optional[Container] = None,
        kernel: Optional[ASGIKernel] = None,
        renderer: Optional[RootViewRenderer] = None,
    ) -> None:
        self.component = component
        self.props: Dict[str, Any] = dict(to_plain(props) or {})
        self.root_view = root_view
        self.version = version
        self.view_data: Dict[str, Any] = {}

        self.is_dialog = False
        self.base_page_url: Optional[str] = None
        self._base_page_route: Optional[Tuple[str, Dict[str, Any]]] = None
        self.context = "default"

        self.container = container or Container()
        self.kernel = kernel
        self.renderer = renderer

    def __repr__(self) -> str:
        return f"Page(component={self.component!r}, dialog={self.is_dialog})"

    # Builders

    def with_props(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> "Page":
        if isinstance(key, Mapping):
            self.props.update(key)
        else:
            self.props[key] = value
        return self

    def with_view_data(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> "Page":
        if isinstance(key, Mapping):
            self.view_data.update(key)
        else:
            self.view_data[key] = value
        return self

    def set_root_view(self, root_view: str) -> "Page":
        self.root_view = root_view
        return self

    def set_context(self, context: str) -> "Page":
        self.context = context
        return self

    def as_dialog(self) -> "Page":
        self.is_dialog = True
        return self

    def set_base_page_url(self, url: str) -> "Page":
        self.base_page_url = url
        return self

    def set_base_page_route(self, name: str, /, **path_params: Any) -> "Page":
        """Use a named route as the base page; resolved against the request later."""
        self._base_page_route = (name, path_params)
        return self

    # Response finalization

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        response = await self.to_response(request)
        await response(scope, receive, send)

    def select_props(self, request: Request) -> Dict[str, Any]:
        """Props in scope for this request, before resolution."""
        keys = headers.partial_keys(request)
        if keys and request.headers.get(headers.PARTIAL_COMPONENT) == self.component:
            logger.debug("Partial reload of %s: %s", self.component, ", ".join(keys))
            return only(self.props, keys)
        return without_deferred(self.props)

    async def to_response(self, request: Request) -> Response:
        props = await resolve_props(self.select_props(request), request, self.container)

        base_url = self._resolve_base_page_url(request)
        if (
            self.is_dialog
            and base_url
            and request.headers.get(headers.CONTEXT) != self.context
        ):
            base_response = await self._dispatch_base_page(request, base_url)
            if not base_response.headers.get(headers.INERTIA):
                # The base route answered with something other than a page
                # (an error page, a download, ...); don't overlay the dialog.
                return base_response

            page = decode_response(base_response)
            page["dialog"] = {
                "component": self.component,
                "props": props,
                "url": request_uri(request),
                "eager": True,
            }
        else:
            page = {
                "component": self.component,
                "props": props,
                "url": request_uri(request),
                "version": self.version,
                "type": "dialog" if self.is_dialog else "page",
                "dialog": None,
                "context": self.context,
            }

        if headers.is_inertia_request(request):
            return JSONResponse(
                page,
                status_code=200,
                headers={headers.INERTIA: "true", "Vary": headers.INERTIA},
            )

        if self.renderer is None:
            raise TemplatesNotConfigured("No root view renderer configured", self.component)

        response = self.renderer.render(request, self.root_view, {**self.view_data, "page": page})
        response.headers["Vary"] = headers.INERTIA
        return response

    def _resolve_base_page_url(self, request: Request) -> Optional[str]:
        if self.base_page_url is None and self._base_page_route is not None:
            name, params = self._base_page_route
            self.base_page_url = str(request.url_for(name, **params))
        return self.base_page_url

    async def _dispatch_base_page(self, request: Request, url: str) -> Response:
        """Run the base page through the application, following redirects."""
        kernel = self.kernel
        if kernel is None:
            app = request.scope.get("app")
            if app is None:
                raise KernelNotConfigured("No kernel to dispatch the base page", self.component)
            kernel = ASGIKernel(app)

        logger.debug("Rendering dialog %s over base page %s", self.component, url)
        response = await kernel.handle(self.create_base_request(request, url))
        while is_redirect(response):
            url = target_url(response)
            logger.debug("Base page redirected to %s", url)
            response = await kernel.handle(self.create_base_request(request, url))
        return response

    def create_base_request(self, request: Request, url: str) -> Request:
        """Sub-request for the base page, carrying the original request's headers."""
        base_headers = dict(request.headers)
        base_headers["accept"] = "text/html, application/xhtml+xml"
        base_headers["x-requested-with"] = "XMLHttpRequest"
        base_headers[headers.INERTIA.lower()] = "true"
        base_headers[headers.VERSION.lower()] = self.version
        return build_request(url, base_headers, base=request)


def request_uri(request: Request) -> str:
    """Path plus query string, as the client sees it."""
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return uri
