"""Server-side adapter for the Inertia protocol on Starlette."""

from pyinertia.container import Container
from pyinertia.exceptions import (
    BindingResolutionError,
    InertiaError,
    KernelNotConfigured,
    TemplatesNotConfigured,
)
from pyinertia.factory import PageFactory
from pyinertia.kernel import ASGIKernel
from pyinertia.middleware import InertiaMiddleware
from pyinertia.page import Page
from pyinertia.props import DeferredProp, LazyProp

# Process-wide default factory
inertia = PageFactory()

__all__ = [
    "ASGIKernel",
    "BindingResolutionError",
    "Container",
    "DeferredProp",
    "InertiaError",
    "InertiaMiddleware",
    "KernelNotConfigured",
    "LazyProp",
    "Page",
    "PageFactory",
    "TemplatesNotConfigured",
    "inertia",
]
