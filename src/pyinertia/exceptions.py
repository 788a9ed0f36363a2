"""Adapter exceptions."""


class InertiaError(Exception):
    """Base class for adapter misconfiguration errors."""

    def __init__(self, message: str, component: str = ""):
        self.message = message
        self.component = component
        super().__init__(message)

    def __str__(self) -> str:
        if self.component:
            return f"{self.component}: {self.message}"
        return self.message


class KernelNotConfigured(InertiaError):
    """Raised when a dialog page needs a base-page dispatch but no kernel is set."""


class TemplatesNotConfigured(InertiaError):
    """Raised when a full document is requested but no root view renderer is set."""


class BindingResolutionError(InertiaError):
    """Raised when the container cannot supply a required parameter."""
