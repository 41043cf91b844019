"""
Custom exceptions for the operating-room duration monitor.

A missing baseline or a surgery that has not started is never an exception;
those are classification levels. These exceptions cover the boundaries:
bad upstream records, unreachable data sources, and invalid configuration.
"""


class ORMonitorError(Exception):
    """Base exception for monitor failures."""
    pass


class DataValidationError(ORMonitorError):
    """Raised when an upstream record fails validation."""
    pass


class DataSourceError(ORMonitorError):
    """Raised when a data source cannot be read."""
    pass


class DataUnavailableError(DataSourceError):
    """Raised when no live, cached, or seed data can be served."""
    pass


class ConfigurationError(ORMonitorError):
    """Raised when configuration is invalid or missing."""
    pass
