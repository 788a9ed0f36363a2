"""Cross-request configuration and the Page factory."""

import contextvars
import inspect
import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional, Union

from starlette.requests import HTTPConnection
from starlette.responses import RedirectResponse, Response
from starlette.templating import Jinja2Templates
from starlette.types import ASGIApp

from pyinertia import headers
from pyinertia.container import Container
from pyinertia.context import get_current_request
from pyinertia.exceptions import InertiaError
from pyinertia.kernel import ASGIKernel, is_redirect, target_url
from pyinertia.page import Page
from pyinertia.props import DeferredProp, get_dotted, merge_props, set_dotted, to_plain
from pyinertia.templating import RootViewRenderer

logger = logging.getLogger(__name__)

VersionType = Union[str, Callable[..., Any], None]


class PageFactory:
    """
    Holds the defaults every page is built from.

    Root view, asset version and collaborators are configured once at
    startup. Shared props are scoped to the current request context:
    ``flush_shared()`` (called by InertiaMiddleware at the start of every
    request) binds a fresh mapping, so concurrent requests never see each
    other's ``share()`` calls.
    """

    def __init__(
        self,
        root_view: str = "app",
        version: VersionType = None,
        templates: Union[Jinja2Templates, str, "os.PathLike[str]", None] = None,
        app: Optional[ASGIApp] = None,
        container: Optional[Container] = None,
    ) -> None:
        self.root_view = root_view
        self._version: VersionType = version
        self.container = container or Container()
        self.renderer: Optional[RootViewRenderer] = None
        self.kernel: Optional[ASGIKernel] = None
        self._shared: contextvars.ContextVar[Optional[Dict[str, Any]]] = contextvars.ContextVar(
            f"inertia_shared_{id(self)}", default=None
        )

        if templates is not None:
            self.set_templates(templates)
        if app is not None:
            self.set_app(app)

    def configure(self, **options: Any) -> None:
        """Apply options as produced by ``pyinertia.config.load_config``."""
        if "root_view" in options:
            self.set_root_view(options["root_view"])
        if "version" in options:
            self.version(options["version"])
        if options.get("templates_dir"):
            self.set_templates(options["templates_dir"])

    def set_root_view(self, name: str) -> None:
        self.root_view = name

    def set_templates(self, templates: Union[Jinja2Templates, str, "os.PathLike[str]"]) -> None:
        self.renderer = RootViewRenderer(templates)

    def set_app(self, app: ASGIApp) -> None:
        """Dispatch dialog base pages through ``app`` instead of the request's own app."""
        self.kernel = ASGIKernel(app)

    # Shared props

    def _shared_props(self) -> Dict[str, Any]:
        shared = self._shared.get()
        if shared is None:
            shared = {}
            self._shared.set(shared)
        return shared

    def share(self, key: Union[str, Mapping[str, Any], Any], value: Any = None) -> None:
        """
        Share props with every page rendered in this request.

        ``share("user.name", "Bo")`` sets a nested key. A mapping (or a model
        exposing its own dict conversion) is merged shallowly, later keys win.
        """
        if isinstance(key, str):
            set_dotted(self._shared_props(), key, value)
            return

        shared = self._shared_props()
        shared.update(to_plain(key))

    def get_shared(self, key: Optional[str] = None, default: Any = None) -> Any:
        if key:
            return get_dotted(self._shared_props(), key, default)
        return self._shared_props()

    def flush_shared(self) -> contextvars.Token:
        """Start a new, empty set of shared props; returns the token to restore the old one."""
        return self._shared.set({})

    def restore_shared(self, token: contextvars.Token) -> None:
        self._shared.reset(token)

    # Versioning

    def version(self, version: VersionType) -> None:
        self._version = version

    def get_version(self) -> str:
        """Current asset version; a resolver must be a plain (synchronous) callable."""
        version = self._version
        if callable(version):
            version = self.container.call(version)
            if inspect.isawaitable(version):
                if inspect.iscoroutine(version):
                    version.close()
                raise InertiaError("Version resolvers must be synchronous")
        if version is None:
            return ""
        return str(version)

    # Pages

    def lazy(self, callback: Callable[..., Any]) -> DeferredProp:
        return DeferredProp(callback)

    def render(self, component: str, props: Optional[Mapping[str, Any]] = None) -> Page:
        return Page(
            component,
            merge_props(self._shared_props(), to_plain(props)),
            root_view=self.root_view,
            version=self.get_version(),
            container=self.container,
            kernel=self.kernel,
            renderer=self.renderer,
        )

    page = render

    def dialog(self, component: str, props: Optional[Mapping[str, Any]] = None) -> Page:
        return self.render(component, props).as_dialog()

    def location(
        self,
        url: Union[str, RedirectResponse, Response],
        request: Optional[HTTPConnection] = None,
    ) -> Response:
        """
        Send the client to ``url`` with a full browser visit.

        Protocol requests get a 409 carrying ``X-Inertia-Location``; anything
        else gets an ordinary redirect.
        """
        if request is None:
            request = get_current_request()

        redirect = isinstance(url, Response) and is_redirect(url)

        if request is not None and headers.is_inertia_request(request):
            location = target_url(url) if redirect else str(url)
            logger.debug("Forcing full visit to %s", location)
            return Response(b"", status_code=409, headers={headers.LOCATION: location})

        if redirect:
            return url
        return RedirectResponse(str(url))
