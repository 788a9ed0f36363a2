"""Prop values and their resolution into serializable data."""

import concurrent.futures
import inspect
import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Mapping, MutableMapping, Optional

from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import Response

if TYPE_CHECKING:
    from pyinertia.container import Container

logger = logging.getLogger(__name__)


class DeferredProp:
    """
    A prop computed only when a partial reload asks for it by name.

    Deferred props are dropped from full page loads entirely, so expensive
    values can be skipped on first render and fetched on demand.
    """

    def __init__(self, callback: Callable[..., Any]) -> None:
        self.callback = callback

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.callback(*args, **kwargs)

    def __repr__(self) -> str:
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        return f"DeferredProp({name})"


LazyProp = DeferredProp


def set_dotted(target: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Assign ``value`` at a dotted path, creating (or replacing) intermediate dicts."""
    parts = key.split(".")
    node = target
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


def get_dotted(source: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Look up a dotted path, falling back to ``default`` when any segment is absent."""
    if key in source:
        return source[key]

    node: Any = source
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return default
        node = node[part]
    return node


def only(props: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    """Subset of ``props`` holding the requested keys, in the mapping's own order."""
    wanted = set(keys)
    return {key: value for key, value in props.items() if key in wanted}


def without_deferred(props: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in props.items() if not isinstance(value, DeferredProp)}


def to_plain(value: Any) -> Any:
    """Convert a model-like value to a dict, or return it unchanged."""
    if isinstance(value, BaseModel):
        return value.model_dump()
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict) and not isinstance(value, type):
        return to_dict()
    return value


def decode_response(response: Response) -> Any:
    """Decoded JSON payload of a rendered response."""
    body = bytes(response.body)
    if not body:
        return None
    return json.loads(body)


def _is_plain_callable(value: Any) -> bool:
    return (
        callable(value)
        and not isinstance(value, (DeferredProp, type, BaseModel, Response))
        and not hasattr(value, "to_response")
    )


async def resolve_value(value: Any, request: Request, container: "Container") -> Any:
    """Resolve a single prop value, except for recursion into containers."""
    if _is_plain_callable(value):
        value = container.call(value, request)

    if isinstance(value, DeferredProp):
        value = container.call(value.callback, request)

    if inspect.isawaitable(value):
        value = await value
    elif isinstance(value, concurrent.futures.Future):
        # Blocks the event loop until the future completes; there is no timeout
        value = value.result()

    if isinstance(value, Response):
        value = decode_response(value)
    elif hasattr(value, "to_response") and not isinstance(value, type):
        response = value.to_response(request)
        if inspect.isawaitable(response):
            response = await response
        value = decode_response(response)

    return to_plain(value)


async def resolve_props(
    props: Mapping[str, Any],
    request: Request,
    container: "Container",
    unpack_dotted: bool = True,
) -> Dict[str, Any]:
    """
    Resolve every value in ``props`` into serializable data.

    Values are resolved in mapping order. Nested dicts and lists are resolved
    recursively; dotted keys are expanded into nested dicts only at the top
    level, a literal dot inside a nested key is kept as-is.

    Nesting depth is not bounded: a self-referential dict recurses until
    Python's recursion limit is hit.
    """
    resolved: Dict[str, Any] = {}

    for key, value in props.items():
        value = await _resolve_nested(value, request, container)

        if unpack_dotted and "." in key:
            # Only writes into dicts created by this resolution, never into the input
            set_dotted(resolved, key, value)
        else:
            resolved[key] = value

    return resolved


async def _resolve_nested(value: Any, request: Request, container: "Container") -> Any:
    value = await resolve_value(value, request, container)

    if isinstance(value, dict):
        return await resolve_props(value, request, container, unpack_dotted=False)
    if isinstance(value, (list, tuple)):
        return [await _resolve_nested(item, request, container) for item in value]
    return value


def merge_props(base: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Shallow merge, keys from ``overrides`` win."""
    merged = dict(base)
    if overrides:
        merged.update(overrides)
    return merged
