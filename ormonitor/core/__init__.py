"""
Core module: Configuration, logging, and exception handling.
"""

from .config import Config, config
from .logging_config import setup_logging
from .exceptions import (
    ConfigurationError,
    DataSourceError,
    DataUnavailableError,
    DataValidationError,
    ORMonitorError,
)

__all__ = [
    "Config",
    "config",
    "ORMonitorError",
    "DataValidationError",
    "DataSourceError",
    "DataUnavailableError",
    "ConfigurationError",
    "setup_logging",
]
