"""Minimal dependency-injection invoker for prop and version callables."""

import inspect
from typing import Any, Callable, Dict, Optional, Tuple

from starlette.requests import HTTPConnection

from pyinertia.context import get_current_request
from pyinertia.exceptions import BindingResolutionError


class Container:
    """
    Calls user callables, supplying their declared parameters.

    Parameters are matched by name against named bindings first, then by
    annotation against type bindings. ``request`` (or any parameter annotated
    with a Starlette ``Request``) receives the request being resolved.
    Parameters with defaults that cannot be matched keep their defaults.
    """

    def __init__(self) -> None:
        self.bindings: Dict[str, Any] = {}
        self.type_bindings: Dict[type, Any] = {}

    def bind(self, name: str, value: Any) -> None:
        """Bind a value (or zero-argument factory) to a parameter name."""
        self.bindings[name] = value

    def bind_type(self, cls: type, value: Any) -> None:
        """Bind a value (or zero-argument factory) to a parameter annotation."""
        self.type_bindings[cls] = value

    def call(self, func: Callable[..., Any], request: Optional[HTTPConnection] = None) -> Any:
        """Invoke ``func`` and return its raw result (which may be awaitable)."""
        if request is None:
            request = get_current_request()

        try:
            sig = inspect.signature(func)
        except (TypeError, ValueError):
            # Builtins without introspectable signatures
            return func()

        kwargs: Dict[str, Any] = {}
        for name, param in sig.parameters.items():
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            found, value = self._lookup(name, param, request)
            if found:
                kwargs[name] = value
            elif param.default is inspect.Parameter.empty:
                raise BindingResolutionError(
                    f"Unable to resolve parameter '{name}' of {getattr(func, '__qualname__', func)!r}"
                )

        return func(**kwargs)

    def _lookup(
        self, name: str, param: inspect.Parameter, request: Optional[HTTPConnection]
    ) -> Tuple[bool, Any]:
        if name in self.bindings:
            return True, self._materialize(self.bindings[name])

        annotation = param.annotation
        if isinstance(annotation, type):
            if request is not None and issubclass(annotation, HTTPConnection):
                return True, request
            for cls, value in self.type_bindings.items():
                if issubclass(annotation, cls):
                    return True, self._materialize(value)

        if name == "request" and request is not None:
            return True, request

        return False, None

    def _materialize(self, value: Any) -> Any:
        # Classes and plain functions act as factories, anything else is an instance
        if inspect.isclass(value) or inspect.isfunction(value):
            return self.call(value)
        return value
