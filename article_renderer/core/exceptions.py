"""
Custom exception classes for the article renderer.
"""
from typing import Optional


class ArticleRendererError(Exception):
    """
    Base class for all custom exceptions in the article renderer.

    Attributes:
        message (str): A human-readable description of the error.
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


# --- Configuration Related Exceptions ---
class ConfigurationError(ArticleRendererError):
    """
    Raised for errors related to application configuration, such as a setting
    that is present but holds an unusable value.
    """
    def __init__(self, message: str):
        super().__init__(message)


# --- Input Related Exceptions ---
class MalformedInputError(ArticleRendererError):
    """
    Raised when a caller supplies a missing or unusable argument (empty URL,
    relative URL, non-positive timeout, cookie argument of the wrong shape).

    The bridge resolves these locally by answering with an empty result rather
    than propagating them to the host application.
    """
    def __init__(self, message: str):
        super().__init__(message)


class MethodNotImplementedError(ArticleRendererError):
    """
    Raised by the bridge when the host asks for a method it does not know.

    Attributes:
        method (str): The unrecognized method name.
    """
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Method '{method}' is not implemented.")


# --- Component Related Exceptions ---
class ComponentError(ArticleRendererError):
    """
    A general base class for errors originating from within a specific component
    (e.g., Renderer, CookieStore).

    Attributes:
        component_name (str): Name of the component where the error originated.
    """
    def __init__(self, component_name: str, message: str):
        full_message = f"Error in component '{component_name}': {message}"
        super().__init__(full_message)
        self.component_name = component_name


class RendererError(ComponentError):
    """Raised for errors specific to the Renderer component (browser launch, page creation)."""
    code = "RENDER_ERROR"

    def __init__(self, message: str):
        super().__init__(component_name="Renderer", message=message)


class RenderTimeoutError(RendererError):
    """
    Raised when a render session exceeds the caller's time budget.

    The surface has already been torn down when this is raised; it is never
    retried internally.
    """
    code = "TIMEOUT"

    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"Timed out rendering {url} after {timeout_ms}ms")


class PageLoadError(RendererError):
    """
    Raised when the browser engine reports a navigation failure.

    Attributes:
        description (str): The engine-reported description of the failure.
        error_code (Optional[int]): The engine-reported error code, when there is one.
    """
    code = "LOAD_ERROR"

    def __init__(self, description: str, url: Optional[str] = None, error_code: Optional[int] = None):
        self.description = description
        self.url = url
        self.error_code = error_code
        super().__init__(description)


class ScriptEvaluationError(RendererError):
    """
    Raised by a browser surface when an injected script throws or cannot be
    evaluated. The sanitizer and the readiness poller swallow it.
    """
    code = "SCRIPT_ERROR"

    def __init__(self, message: str):
        super().__init__(message)


class CookieStoreError(ComponentError):
    """Raised for errors specific to the cookie store backends (e.g., unreadable storage state)."""
    def __init__(self, message: str):
        super().__init__(component_name="CookieStore", message=message)
