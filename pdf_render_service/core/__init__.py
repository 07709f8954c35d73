from .config import get_config, get_port, config_manager, ConfigurationManager, ConfigError, ConfigFileNotFoundError, InvalidYamlError
from .exceptions import (
    PdfRenderServiceError,
    ComponentError,
    RendererError,
    StorageError,
    OriginNotAllowedError,
    PdfGenerationError,
    InvalidInputError,
    NavigationTimeoutError,
    UpstreamPageError,
    ExportFailedError,
    EmptyOutputError,
    UnexpectedRenderError,
)
from .logger import setup_logging, get_logger

__all__ = [
    # Config
    "get_config",
    "get_port",
    "config_manager",
    "ConfigurationManager",
    "ConfigError",
    "ConfigFileNotFoundError",
    "InvalidYamlError",
    # Logger
    "setup_logging",
    "get_logger",
    # Exceptions
    "PdfRenderServiceError",
    "ComponentError",
    "RendererError",
    "StorageError",
    "OriginNotAllowedError",
    "PdfGenerationError",
    "InvalidInputError",
    "NavigationTimeoutError",
    "UpstreamPageError",
    "ExportFailedError",
    "EmptyOutputError",
    "UnexpectedRenderError",
]
