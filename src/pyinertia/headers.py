"""Protocol header names and request helpers."""

from typing import List

from starlette.requests import HTTPConnection

INERTIA = "X-Inertia"
VERSION = "X-Inertia-Version"
LOCATION = "X-Inertia-Location"
PARTIAL_DATA = "X-Inertia-Partial-Data"
PARTIAL_COMPONENT = "X-Inertia-Partial-Component"
CONTEXT = "X-Inertia-Context"


def is_inertia_request(request: HTTPConnection) -> bool:
    """True when the client is already speaking the protocol."""
    return bool(request.headers.get(INERTIA))


def partial_keys(request: HTTPConnection) -> List[str]:
    """Prop keys requested by a partial reload, empty items dropped."""
    raw = request.headers.get(PARTIAL_DATA, "")
    return [key for key in raw.split(",") if key]
