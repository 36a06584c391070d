"""
Configuration for the article renderer.

Settings live in one YAML file per environment under `article_renderer/config/`
(`development.yaml`, `production.yaml`, `testing.yaml`). `APP_ENV` picks the
file and defaults to `development`. Individual keys can then be overridden from
the process environment, which is how containers change the browser type or
the cookie persistence path without shipping another YAML file:

    ARTICLE_RENDERER__COMPONENTS__RENDERER__DEFAULT_TIMEOUT_MS=20000

Double underscores separate key levels. Override values are parsed as YAML
scalars, so `20000` arrives as an int, `false` as a bool and `null` as None.

A single `ConfigurationManager` is shared by the whole process; `config_manager`
is that instance and `get_config()` reads from it with dot-notation keys such as
`"components.readiness.interval_ms"`.
"""
import logging
import os
from typing import Any, Dict, Mapping, Optional

import yaml

CONFIG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "config")
DEFAULT_ENV = "development"
ENV_OVERRIDE_PREFIX = "ARTICLE_RENDERER__"

# The logger module imports this one, so config uses the stdlib logger directly.
_log = logging.getLogger(__name__)


class ConfigError(Exception):
    """Base class for all configuration-related errors."""
    pass


class ConfigFileNotFoundError(ConfigError):
    """The YAML file for the requested environment does not exist."""
    pass


class InvalidYamlError(ConfigError):
    """The YAML file cannot be parsed, or its top level is not a mapping."""
    pass


def _apply_env_overrides(settings: Dict[str, Any], environ: Mapping[str, str]) -> int:
    applied = 0
    for name, raw in environ.items():
        if not name.startswith(ENV_OVERRIDE_PREFIX):
            continue
        path = [part.lower() for part in name[len(ENV_OVERRIDE_PREFIX):].split("__") if part]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw) if raw != "" else ""
        except yaml.YAMLError:
            value = raw

        node = settings
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value
        applied += 1
    return applied


class ConfigurationManager:
    """
    Process-wide settings, loaded from YAML plus environment overrides.

    Instantiating the class always returns the same object; the first
    instantiation loads the configuration for the current `APP_ENV`.
    """
    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}
    _current_env: str = ""
    CONFIG_DIR: str = CONFIG_DIR

    def __new__(cls) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super(ConfigurationManager, cls).__new__(cls)
            cls._instance.load_config()
        return cls._instance

    def load_config(self, env: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> None:
        """
        Loads `<env>.yaml` from `CONFIG_DIR` and applies environment overrides.

        Args:
            env (Optional[str]): Environment to load. Falls back to `APP_ENV`, then `DEFAULT_ENV`.
            environ (Optional[Mapping[str, str]]): Source of `ARTICLE_RENDERER__*`
                overrides. Defaults to `os.environ`.

        Raises:
            ConfigFileNotFoundError: If the environment has no YAML file.
            InvalidYamlError: If the file is malformed or not a mapping.
        """
        target_env = env or os.getenv("APP_ENV", DEFAULT_ENV)
        config_file_path = os.path.join(self.CONFIG_DIR, f"{target_env}.yaml")

        try:
            with open(config_file_path, "r") as f:
                loaded = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigFileNotFoundError(
                f"Configuration file not found for environment '{target_env}' at '{config_file_path}'. "
                f"Ensure '{target_env}.yaml' exists in the '{self.CONFIG_DIR}' directory."
            )
        except yaml.YAMLError as e:
            raise InvalidYamlError(f"Error parsing YAML in configuration file '{config_file_path}': {e}")
        if not isinstance(loaded, dict):
            raise InvalidYamlError(f"Configuration file '{config_file_path}' does not contain a valid YAML dictionary.")

        overrides = _apply_env_overrides(loaded, os.environ if environ is None else environ)
        if overrides:
            _log.info(f"Applied {overrides} configuration override(s) from the environment.")

        self._config = loaded
        self._current_env = target_env

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Returns the value at a dot-notation `key`, or `default` when any level is missing.
        """
        value: Any = self._config
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def reload_config(self, env: Optional[str] = None) -> None:
        """Reloads the current environment, or switches to `env`."""
        old_env = self._current_env
        self.load_config(env or old_env or None)
        _log.info(f"Configuration reloaded. Previous environment: '{old_env}', current: '{self._current_env}'.")

    @property
    def current_environment(self) -> str:
        return self._current_env


# Created at import time, which loads the configuration once for the process.
config_manager = ConfigurationManager()


def get_config(key: str, default: Optional[Any] = None) -> Any:
    """Reads `key` from the global `config_manager`."""
    return config_manager.get(key, default)
