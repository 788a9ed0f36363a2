"""Root view rendering with Jinja2."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from markupsafe import Markup, escape
from starlette.requests import Request
from starlette.responses import Response
from starlette.templating import Jinja2Templates


def render_root_element(page: Mapping[str, Any], id: str = "app") -> Markup:
    """The element the client mounts on, carrying the page envelope in ``data-page``."""
    payload = json.dumps(page, separators=(",", ":"))
    return Markup(f'<div id="{escape(id)}" data-page="{escape(payload)}"></div>')


class RootViewRenderer:
    """Renders the full-document template for non-protocol requests."""

    def __init__(self, templates: Union[Jinja2Templates, str, "os.PathLike[str]"]) -> None:
        if not isinstance(templates, Jinja2Templates):
            templates = Jinja2Templates(directory=Path(templates))
        self.templates = templates
        self.templates.env.globals["inertia"] = render_root_element

    @staticmethod
    def template_name(view: str) -> str:
        # Views are addressed without an extension, like "app"
        if Path(view).suffix:
            return view
        return f"{view}.html"

    def render(self, request: Request, view: str, context: Dict[str, Any]) -> Response:
        return self.templates.TemplateResponse(request, self.template_name(view), context)
