import html
import json

from starlette.templating import Jinja2Templates

from pyinertia.templating import RootViewRenderer, render_root_element

from conftest import MockRequest


def test_root_element_escapes_payload():
    page = {"component": "Home", "props": {"html": '<script>"x"</script>'}}
    element = str(render_root_element(page, id="root"))

    assert element.startswith('<div id="root" data-page="')
    assert "<script>" not in element
    payload = element[len('<div id="root" data-page="') : -len('"></div>')]
    assert json.loads(html.unescape(payload)) == page


def test_template_name():
    assert RootViewRenderer.template_name("app") == "app.html"
    assert RootViewRenderer.template_name("layouts/base.jinja") == "layouts/base.jinja"


def test_render_from_directory(templates_dir):
    renderer = RootViewRenderer(templates_dir)
    response = renderer.render(
        MockRequest.create(), "app", {"title": "Hi", "page": {"component": "Home"}}
    )

    body = response.body.decode()
    assert "<title>Hi</title>" in body
    assert 'id="app"' in body


def test_accepts_existing_templates(templates_dir):
    templates = Jinja2Templates(directory=str(templates_dir))
    renderer = RootViewRenderer(templates)
    assert renderer.templates is templates
    assert "inertia" in templates.env.globals
