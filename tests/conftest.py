from typing import Any, Dict, Optional
from urllib.parse import urlencode

import pytest
from starlette.requests import Request

from pyinertia import PageFactory


class MockRequest:
    @staticmethod
    def create(
        headers: Optional[Dict[str, str]] = None,
        path: str = "/",
        query_params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
    ) -> Request:
        scope = {
            "type": "http",
            "method": method,
            "scheme": "http",
            "server": ("testserver", 80),
            "path": path,
            "root_path": "",
            "query_string": urlencode(query_params).encode() if query_params else b"",
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "client": ["127.0.0.1", 1234],
        }

        async def receive() -> Dict[str, Any]:
            return {"type": "http.request", "body": b"", "more_body": False}

        return Request(scope, receive=receive)


@pytest.fixture
def templates_dir(tmp_path):
    directory = tmp_path / "templates"
    directory.mkdir()
    (directory / "app.html").write_text(
        "<html><head><title>{{ title|default('') }}</title></head>"
        "<body>{{ inertia(page) }}</body></html>",
        encoding="utf-8",
    )
    return directory


@pytest.fixture
def factory(templates_dir):
    factory = PageFactory(version="1", templates=templates_dir)
    factory.flush_shared()
    return factory
