from .config import get_config, config_manager, ConfigurationManager, ConfigError, ConfigFileNotFoundError, InvalidYamlError
from .exceptions import (
    ArticleRendererError,
    ConfigurationError,
    MalformedInputError,
    MethodNotImplementedError,
    ComponentError,
    RendererError,
    RenderTimeoutError,
    PageLoadError,
    ScriptEvaluationError,
    CookieStoreError,
)
from .logger import setup_logging, get_logger

__all__ = [
    # Config
    "get_config",
    "config_manager",
    "ConfigurationManager",
    "ConfigError",
    "ConfigFileNotFoundError",
    "InvalidYamlError",
    # Logger
    "setup_logging",
    "get_logger",
    # Exceptions
    "ArticleRendererError",
    "ConfigurationError",
    "MalformedInputError",
    "MethodNotImplementedError",
    "ComponentError",
    "RendererError",
    "RenderTimeoutError",
    "PageLoadError",
    "ScriptEvaluationError",
    "CookieStoreError",
]
