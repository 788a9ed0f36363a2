import contextvars
from typing import Optional

from starlette.requests import Request

# Request currently being handled, bound by InertiaMiddleware for each dispatch.
# Nested dispatches bind their own request and reset the token on exit, so the
# outer binding is back in place as soon as the inner call returns.
current_request: contextvars.ContextVar[Optional[Request]] = contextvars.ContextVar(
    "current_request", default=None
)


def get_current_request() -> Optional[Request]:
    return current_request.get()
