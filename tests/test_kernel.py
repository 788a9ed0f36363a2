import unittest

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, RedirectResponse
from starlette.routing import Route

from pyinertia.kernel import ASGIKernel, build_request, is_redirect, target_url

from conftest import MockRequest


async def echo(request: Request):
    return JSONResponse(
        {
            "path": request.url.path,
            "query": request.url.query,
            "host": request.headers.get("host"),
            "custom": request.headers.get("x-custom"),
        },
        headers={"X-Echo": "1"},
    )


async def explode(request: Request):
    raise LookupError("boom")


async def moved(request: Request):
    return RedirectResponse("/echo", status_code=301)


app = Starlette(
    routes=[Route("/echo", echo), Route("/explode", explode), Route("/moved", moved)]
)


class TestRedirectHelpers(unittest.TestCase):
    def test_is_redirect(self) -> None:
        for status in (301, 302, 303, 307, 308):
            self.assertTrue(is_redirect(RedirectResponse("/x", status_code=status)))
        self.assertFalse(is_redirect(PlainTextResponse("ok")))
        # A redirect status without a target is not followed
        self.assertFalse(is_redirect(PlainTextResponse("", status_code=302)))

    def test_target_url(self) -> None:
        self.assertEqual(target_url(RedirectResponse("/next?a=1")), "/next?a=1")


class TestBuildRequest(unittest.TestCase):
    def test_relative_url_inherits_connection(self) -> None:
        base = MockRequest.create(headers={"Host": "example.org"}, path="/dialog")
        request = build_request("/users?page=2", {"x-custom": "1"}, base=base)

        self.assertEqual(request.method, "GET")
        self.assertEqual(request.url.path, "/users")
        self.assertEqual(request.url.query, "page=2")
        self.assertEqual(request.headers["host"], "example.org")
        self.assertEqual(request.headers["x-custom"], "1")

    def test_absolute_url_sets_host(self) -> None:
        base = MockRequest.create(headers={"Host": "example.org"})
        request = build_request("https://other.test:8443/a", {"host": "ignored"}, base=base)

        self.assertEqual(request.url.scheme, "https")
        self.assertEqual(request.headers["host"], "other.test:8443")
        self.assertEqual(request.scope["server"], ("other.test", 8443))
        self.assertEqual(request.headers.getlist("host"), ["other.test:8443"])


class TestASGIKernel(unittest.IsolatedAsyncioTestCase):
    async def test_handle_captures_response(self) -> None:
        kernel = ASGIKernel(app)
        base = MockRequest.create(headers={"Host": "example.org"})

        response = await kernel.handle(build_request("/echo?q=1", {"x-custom": "yes"}, base=base))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["X-Echo"], "1")
        self.assertEqual(
            response.body,
            JSONResponse({"path": "/echo", "query": "q=1", "host": "example.org", "custom": "yes"}).body,
        )

    async def test_redirects_are_returned_not_followed(self) -> None:
        response = await ASGIKernel(app).handle(build_request("/moved", {}, base=MockRequest.create()))
        self.assertTrue(is_redirect(response))
        self.assertEqual(target_url(response), "/echo")

    async def test_exceptions_propagate(self) -> None:
        with self.assertRaises(LookupError):
            await ASGIKernel(app).handle(build_request("/explode", {}, base=MockRequest.create()))
