"""
Configuration management for the PDF Render Service.

Settings live in one YAML file per environment (`config/development.yaml`,
`config/production.yaml`), selected by the APP_ENV environment variable.
A single `ConfigurationManager` instance is shared by the whole process and
read with dot-notation keys such as "components.playwright_manager.viewport.width".

A load either succeeds completely or leaves the previously loaded settings in
place, so a bad file on `reload_config` does not leave the service half
configured.
"""
import os
import yaml
from typing import Any, Dict, Optional

# Shipped inside the package next to 'core'.
CONFIG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "config")

DEFAULT_ENV = "development"
PRODUCTION_ENV = "production"

DEFAULT_PORT = 3000

_MISSING = object()


class ConfigError(Exception):
    """Base class for all configuration-related errors."""
    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when the file for the requested environment (e.g., staging.yaml) does not exist."""
    pass


class InvalidYamlError(ConfigError):
    """Raised when a configuration file contains invalid YAML syntax or is not a mapping."""
    pass


def read_yaml_mapping(path: str) -> Dict[str, Any]:
    """
    Parses a YAML file whose top level must be a mapping.

    Raises:
        FileNotFoundError: If `path` does not exist.
        InvalidYamlError: If the file cannot be parsed or its top level is not a mapping.
    """
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidYamlError(f"Error parsing YAML in configuration file '{path}': {e}")
    if not isinstance(data, dict):
        raise InvalidYamlError(f"Configuration file '{path}' does not contain a valid YAML dictionary.")
    return data


class ConfigurationManager:
    """
    Process-wide holder of the active environment's settings.

    Singleton: the first instantiation loads the configuration and later ones
    return the same object. `CONFIG_DIR` is a class attribute so tests can
    point it at a temporary directory.
    """
    CONFIG_DIR: str = CONFIG_DIR
    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}
    _current_env: str = ""

    def __new__(cls) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super(ConfigurationManager, cls).__new__(cls)
            cls._instance.load_config()
        return cls._instance

    def config_path(self, env: str) -> str:
        return os.path.join(self.CONFIG_DIR, f"{env}.yaml")

    def load_config(self, env: Optional[str] = None) -> None:
        """
        Loads the settings of `env`, falling back to APP_ENV and then DEFAULT_ENV.

        The active environment and settings are only replaced once the new
        file has been read and validated.

        Raises:
            ConfigFileNotFoundError: If there is no YAML file for the environment.
            InvalidYamlError: If the file is malformed or not a mapping.
        """
        target_env = env or os.getenv("APP_ENV", DEFAULT_ENV)
        path = self.config_path(target_env)
        try:
            settings = read_yaml_mapping(path)
        except FileNotFoundError:
            raise ConfigFileNotFoundError(
                f"Configuration file not found for environment '{target_env}' at '{path}'. "
                f"Ensure '{target_env}.yaml' exists in the '{self.CONFIG_DIR}' directory."
            )
        self._config = settings
        self._current_env = target_env

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Returns the value at a dot-notation `key`, or `default` when any part
        of the path is missing or runs through a non-mapping value.
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict):
                return default
            node = node.get(part, _MISSING)
            if node is _MISSING:
                return default
        return node

    def reload_config(self, env: Optional[str] = None) -> None:
        """
        Re-reads the configuration, optionally switching environment.

        Args:
            env (Optional[str]): The environment to load. If None, APP_ENV (or the
                                 default environment) is used again.
        """
        # Imported here: the logger module imports this one.
        from pdf_render_service.core.logger import get_logger

        old_env = self._current_env
        self.load_config(env)
        get_logger(__name__).info(f"Configuration reloaded: '{old_env}' -> '{self._current_env}'.")

    @property
    def current_environment(self) -> str:
        """Name of the currently loaded configuration environment."""
        return self._current_env

    @property
    def is_production(self) -> bool:
        return self._current_env == PRODUCTION_ENV


# Global instance; created on first import, which triggers the initial load.
config_manager = ConfigurationManager()


def get_config(key: str, default: Optional[Any] = None) -> Any:
    """
    A convenience function to access configuration values via the global `config_manager`.
    """
    return config_manager.get(key, default)


def get_port(config: Optional[ConfigurationManager] = None) -> int:
    """
    Returns the port the HTTP server should listen on.

    Precedence: the PORT environment variable, then `server.port` from the
    configuration, then DEFAULT_PORT.

    Raises:
        ConfigError: If the resolved value is not an integer.
    """
    raw_port = os.getenv("PORT")
    if not raw_port:
        raw_port = (config or config_manager).get("server.port", DEFAULT_PORT)
    try:
        return int(raw_port)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port value: {raw_port!r}. PORT must be an integer.")
